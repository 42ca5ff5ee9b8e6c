"""Tests for linear combinations and prefit residuals"""

import unittest

import numpy as np
import pytest

from pyrtk.core.data_structures import SatTypeValueMap, TypeValueMap
from pyrtk.core.satellite import SatelliteSystem
from pyrtk.core.type_id import (
    C1G, C2G, CDT_SAT, L1G, L2G, MW21G, RHO, TROPO_SLANT, TypeID,
)
from pyrtk.gnss.combinations import ComputeCombination, LinearCombination, mw_combination
from pyrtk.gnss.frequency import get_wavelength, wavelength_of_mw
from pyrtk.gnss.prefit import ComputePrefit, prefit_combination

GPS = SatelliteSystem.GPS
BDS = SatelliteSystem.BDS


class TestLinearCombination(unittest.TestCase):

    def test_evaluate(self):
        combination = LinearCombination(TypeID("sum"), {C1G: 1.0, C2G: -2.0})
        self.assertEqual(combination.evaluate(TypeValueMap({C1G: 5.0, C2G: 1.0})), 3.0)

    def test_missing_body_type(self):
        combination = LinearCombination(TypeID("sum"), {C1G: 1.0, C2G: -2.0})
        self.assertIsNone(combination.evaluate(TypeValueMap({C1G: 5.0})))

    def test_optional_types(self):
        combination = LinearCombination(TypeID("sum"), {C1G: 1.0})
        combination.add_optional_type(C2G)
        self.assertEqual(combination.evaluate(TypeValueMap({C1G: 5.0})), 5.0)
        self.assertEqual(combination.evaluate(TypeValueMap({C1G: 5.0, C2G: 2.0})), 3.0)


class TestMelbourneWubbena(unittest.TestCase):

    def test_header(self):
        self.assertEqual(mw_combination(GPS, 2, 1).header, MW21G)
        self.assertEqual(mw_combination(BDS, 6, 2).header, TypeID("MW62C"))

    def test_removes_geometry(self):
        rho = 2.1e7 + 0.37
        n1, n2 = 1234, 1221
        tvmap = TypeValueMap({
            C1G: rho, C2G: rho,
            L1G: rho + get_wavelength(GPS, 1) * n1,
            L2G: rho + get_wavelength(GPS, 2) * n2,
        })
        value = mw_combination(GPS, 2, 1).evaluate(tvmap)
        self.assertAlmostEqual(value, wavelength_of_mw(GPS, 2, 1) * (n2 - n1), places=5)

    def test_unknown_band(self):
        with self.assertRaises(ValueError):
            mw_combination(GPS, 2, 9)


class TestComputeCombination(unittest.TestCase):

    def test_per_system(self):
        stv = SatTypeValueMap.from_dict({
            "G01": {C1G: 1.0, C2G: 2.0},
            "C06": {C1G: 1.0, C2G: 2.0},
            "G02": {C1G: 1.0},
        })
        compute = ComputeCombination()
        compute.add_linear(GPS, LinearCombination(TypeID("diff12"), {C1G: 1.0, C2G: -1.0}))
        compute.process(stv)
        self.assertEqual(stv["G01"].get("diff12"), -1.0)
        self.assertNotIn("diff12", stv["C06"])
        self.assertNotIn("diff12", stv["G02"])


class TestPrefit:

    def test_prefit_name(self):
        assert prefit_combination(C1G).header == TypeID("prefitC1G")

    def test_required_and_optional_terms(self):
        stv = SatTypeValueMap.from_dict({
            "G01": {C1G: 100.0, RHO: 90.0, CDT_SAT: 2.0, TROPO_SLANT: 3.0},
            "G02": {C1G: 100.0, RHO: 95.0},
            "G03": {C1G: 100.0},
        })
        prefit = ComputePrefit()
        header = prefit.add_observable(GPS, C1G)
        prefit.process(stv)
        assert stv["G01"][header] == pytest.approx(9.0)
        assert stv["G02"][header] == pytest.approx(5.0)
        assert header not in stv["G03"]

    def test_phase_prefit(self):
        tvmap = TypeValueMap({L1G: 20.5, RHO: 20.0})
        np.testing.assert_allclose(prefit_combination(L1G).evaluate(tvmap), 0.5)
