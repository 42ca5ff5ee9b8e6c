"""Tests for the symbolic equation system"""

import unittest

import numpy as np

from pyrtk.core.data_structures import SatTypeValueMap
from pyrtk.core.exceptions import InvalidEquationSystem, InvalidRequest
from pyrtk.core.satellite import SatelliteSystem, SatID
from pyrtk.core.type_id import DX, DY, N1, WEIGHT, TypeID
from pyrtk.rtk.equations import EpochContext, Equation, EquationSystem, Term, Variable

GPS = SatelliteSystem.GPS
BDS = SatelliteSystem.BDS
PREFIT = TypeID("prefitL1GDiff")
CLOCK = TypeID("dcdtGPS")


def gps_epoch(*prns):
    stv = SatTypeValueMap()
    for i, prn in enumerate(prns):
        stv[SatID(GPS, prn)] = {PREFIT: 1.0 + i, DX: 0.5 + 0.1 * i, DY: -0.3, N1: 1.0}
    return stv


class TestVariable(unittest.TestCase):

    def test_at_binds_satellite(self):
        amb = Variable(N1, system=GPS, is_ambiguity=True, sat_indexed=True)
        bound = amb.at(SatID(GPS, 3))
        self.assertEqual(bound.satellite, SatID(GPS, 3))
        self.assertIsNone(amb.satellite)
        self.assertNotEqual(bound, amb.at(SatID(GPS, 4)))
        self.assertEqual(str(bound), "N1[G03]")

    def test_at_leaves_shared_variables(self):
        dx = Variable(DX)
        self.assertIs(dx.at(SatID(GPS, 3)), dx)
        self.assertEqual(str(Variable(CLOCK, system=GPS)), "dcdtGPS[G]")

    def test_term_coefficient(self):
        stv = gps_epoch(1)
        tvmap = stv[SatID(GPS, 1)]
        self.assertEqual(Term(Variable(DX), 2.0).coefficient(tvmap), 1.0)
        self.assertEqual(Term(Variable(CLOCK), 3.0, lookup=False).coefficient(tvmap), 3.0)
        self.assertIsNone(Term(Variable(TypeID("dZ"))).coefficient(tvmap))


class TestEquationSystem(unittest.TestCase):

    def setUp(self):
        self.dx = Variable(DX)
        self.dy = Variable(DY)
        self.clock = Variable(CLOCK, system=GPS)
        self.amb = Variable(N1, system=GPS, is_ambiguity=True, sat_indexed=True)
        self.system = EquationSystem()
        self.system.add_equation(Equation(
            prefit_type=PREFIT,
            system=GPS,
            terms=(Term(self.dx), Term(self.dy), Term(self.clock, 1.0, lookup=False),
                   Term(self.amb, 0.19)),
            weight=4.0,
        ))

    def test_matrices(self):
        context = self.system.prepare(gps_epoch(3, 7))
        self.assertIsInstance(context, EpochContext)
        self.assertEqual(context.unknowns, (
            self.dx, self.dy, self.clock,
            self.amb.at(SatID(GPS, 3)), self.amb.at(SatID(GPS, 7))))
        np.testing.assert_allclose(context.H, [
            [0.5, -0.3, 1.0, 0.19, 0.0],
            [0.6, -0.3, 1.0, 0.0, 0.19],
        ])
        np.testing.assert_allclose(context.b, [1.0, 2.0])
        np.testing.assert_allclose(context.W, np.diag([4.0, 4.0]))
        self.assertEqual(context.satellites, [SatID(GPS, 3), SatID(GPS, 7)])

    def test_satellite_weight_scales_row(self):
        stv = gps_epoch(3, 7)
        stv[SatID(GPS, 7)][WEIGHT] = 0.25
        context = self.system.prepare(stv)
        np.testing.assert_allclose(np.diag(context.W), [4.0, 1.0])

    def test_prepare_idempotent(self):
        stv = gps_epoch(3, 7, 9)
        first = self.system.prepare(stv)
        second = self.system.prepare(stv)
        self.assertEqual(first.unknowns, second.unknowns)
        np.testing.assert_array_equal(first.H, second.H)
        np.testing.assert_array_equal(first.b, second.b)
        np.testing.assert_array_equal(first.W, second.W)

    def test_order_kept_across_epochs(self):
        self.system.prepare(gps_epoch(3, 7, 9))
        # G01 sorts first but is new, so it goes last
        context = self.system.prepare(gps_epoch(1, 7, 9))
        self.assertEqual(context.unknowns[3:], (
            self.amb.at(SatID(GPS, 7)), self.amb.at(SatID(GPS, 9)),
            self.amb.at(SatID(GPS, 1))))

    def test_row_without_coefficient_dropped(self):
        stv = gps_epoch(3, 7)
        stv[SatID(GPS, 7)].pop(DY)
        context = self.system.prepare(stv)
        self.assertEqual(context.H.shape, (1, 4))
        self.assertEqual(context.rows[0][0], SatID(GPS, 3))

    def test_equation_only_applies_to_its_system(self):
        stv = gps_epoch(3)
        stv["C06"] = {PREFIT: 5.0, DX: 0.1, DY: 0.1, N1: 1.0}
        context = self.system.prepare(stv)
        self.assertEqual(context.satellites, [SatID(GPS, 3)])

    def test_index_lookup(self):
        context = self.system.prepare(gps_epoch(3))
        self.assertEqual(context.index_of(self.clock), 2)
        self.assertTrue(context.has(self.dx))
        self.assertFalse(context.has(Variable(TypeID("dZ"))))
        with self.assertRaises(InvalidRequest):
            context.index_of(Variable(TypeID("dZ")))

    def test_variables_for(self):
        context = self.system.prepare(gps_epoch(3, 7))
        self.assertEqual(len(context.variables_for(GPS, is_ambiguity=True)), 2)
        self.assertEqual(context.variables_for(GPS, is_ambiguity=False), [self.clock])
        self.assertEqual(context.variables_for(BDS), [])

    def test_no_equations(self):
        with self.assertRaises(InvalidEquationSystem):
            EquationSystem().prepare(gps_epoch(3))

    def test_no_rows(self):
        with self.assertRaises(InvalidEquationSystem):
            self.system.prepare(SatTypeValueMap())

    def test_reset_forgets_order(self):
        self.system.prepare(gps_epoch(3, 7))
        self.system.reset()
        self.assertEqual(self.system.equations, [])
        self.assertEqual(self.system._previous_unknowns, ())


if __name__ == '__main__':
    unittest.main()
