#!/usr/bin/env python3
"""Test suite for the per-epoch preprocessing steps"""

import unittest

import numpy as np

from pyrtk.core.data_structures import SatTypeValueMap
from pyrtk.core.satellite import SatelliteSystem, SatID
from pyrtk.core.time import CommonTime
from pyrtk.core.type_id import (
    ARC, AZIMUTH, C1G, DX, DY, DZ, ELEVATION, L1G, RHO, SAT_X, SAT_Y, SAT_Z, WEIGHT,
    TypeID,
)
from pyrtk.gnss.derivative import ComputeDerivative
from pyrtk.gnss.filters import KeepSystems, MarkArc, RequiredObs
from pyrtk.gnss.geometry import enu_rotation, llh2ecef
from pyrtk.gnss.weights import ComputeElevWeights

GPS = SatelliteSystem.GPS
BDS = SatelliteSystem.BDS

RX_LLH = np.array([np.radians(35.71), np.radians(139.81), 45.0])
RX_XYZ = llh2ecef(RX_LLH)


def sat_at(azimuth, elevation, distance=2.2e7):
    az, el = np.radians(azimuth), np.radians(elevation)
    enu = distance * np.array([np.cos(el) * np.sin(az), np.cos(el) * np.cos(az), np.sin(el)])
    sv = RX_XYZ + enu_rotation(RX_LLH).T @ enu
    return {SAT_X: sv[0], SAT_Y: sv[1], SAT_Z: sv[2]}


class TestComputeDerivative(unittest.TestCase):

    def setUp(self):
        self.stv = SatTypeValueMap.from_dict({
            "G01": sat_at(30.0, 60.0),
            "G02": sat_at(100.0, 5.0),
            "G03": {SAT_X: 1.0e7},
            "C06": sat_at(250.0, 20.0),
        })

    def test_geometry_written(self):
        ComputeDerivative(RX_XYZ, min_elevation=10.0).process(self.stv)
        self.assertEqual(self.stv.sat_ids, [SatID(GPS, 1), SatID(BDS, 6)])
        tvmap = self.stv["G01"]
        self.assertAlmostEqual(tvmap[RHO], 2.2e7, places=3)
        self.assertAlmostEqual(tvmap[ELEVATION], 60.0, places=6)
        self.assertAlmostEqual(tvmap[AZIMUTH], 30.0, places=6)
        cosines = np.array([tvmap[DX], tvmap[DY], tvmap[DZ]])
        self.assertAlmostEqual(np.linalg.norm(cosines), 1.0)
        self.assertEqual(tvmap[TypeID("dcdtGPS")], 1.0)
        self.assertEqual(self.stv["C06"][TypeID("dcdtBDS")], 1.0)

    def test_cosines_point_from_satellite(self):
        ComputeDerivative(RX_XYZ).process(self.stv)
        tvmap = self.stv["G01"]
        sv = np.array([tvmap[SAT_X], tvmap[SAT_Y], tvmap[SAT_Z]])
        np.testing.assert_allclose([tvmap[DX], tvmap[DY], tvmap[DZ]],
                                   (RX_XYZ - sv) / tvmap[RHO], atol=1e-12)

    def test_mask(self):
        ComputeDerivative(RX_XYZ, min_elevation=25.0).process(self.stv)
        self.assertEqual(self.stv.sat_ids, [SatID(GPS, 1)])

    def test_coordinates_required(self):
        derivative = ComputeDerivative()
        with self.assertRaises(ValueError):
            derivative.process(self.stv)
        derivative.set_coordinates(RX_XYZ)
        derivative.process(self.stv)
        self.assertIn(RHO, self.stv["G01"])


class TestComputeElevWeights(unittest.TestCase):

    def test_weights(self):
        weights = ComputeElevWeights()
        self.assertEqual(weights.weight(45.0), 1.0)
        self.assertAlmostEqual(weights.weight(15.0), 4.0 * np.sin(np.radians(15.0)) ** 2)
        self.assertAlmostEqual(weights.weight(30.0), 1.0)

    def test_exponent(self):
        self.assertAlmostEqual(ComputeElevWeights(exponent=1.0).weight(15.0),
                               2.0 * np.sin(np.radians(15.0)))

    def test_process(self):
        stv = SatTypeValueMap.from_dict({
            "G01": {ELEVATION: 70.0},
            "G02": {ELEVATION: 20.0},
            "G03": {C1G: 2.0e7},
        })
        ComputeElevWeights().process(stv)
        self.assertEqual(stv["G01"][WEIGHT], 1.0)
        self.assertLess(stv["G02"][WEIGHT], 1.0)
        self.assertNotIn(SatID(GPS, 3), stv)


class TestFilters(unittest.TestCase):

    def test_keep_systems(self):
        stv = SatTypeValueMap.from_dict({"G01": {}, "R03": {}, "C06": {}})
        KeepSystems(["GPS", "C"]).process(stv)
        self.assertEqual(stv.sat_ids, [SatID(GPS, 1), SatID(BDS, 6)])

    def test_required_obs(self):
        stv = SatTypeValueMap.from_dict({
            "G01": {C1G: 1.0, L1G: 1.0},
            "G02": {C1G: 1.0},
            "C06": {C1G: 1.0},
        })
        required = RequiredObs()
        required.add_required_type(GPS, C1G)
        required.add_required_type(GPS, L1G)
        required.add_required_type(GPS, "L1G")
        required.process(stv)
        self.assertEqual(required.required[GPS], [C1G, L1G])
        self.assertEqual(stv.sat_ids, [SatID(GPS, 1), SatID(BDS, 6)])


class TestMarkArc(unittest.TestCase):

    def setUp(self):
        self.mark = MarkArc()
        self.t0 = CommonTime.from_gps_week_seconds(2138, 100.0)

    def epoch(self, flag=0.0):
        return SatTypeValueMap.from_dict({"G01": {"CSFlagL1G": flag, "CSFlagL2G": 0.0}})

    def test_arc_counting(self):
        arcs = []
        for k, flag in enumerate([1.0, 0.0, 0.0, 1.0, 0.0]):
            stv = self.mark.process(self.t0 + k, self.epoch(flag))
            arcs.append(stv["G01"][ARC])
        self.assertEqual(arcs, [1.0, 1.0, 1.0, 2.0, 2.0])
        self.assertEqual(self.mark.arc_start[SatID(GPS, 1)], self.t0 + 3)

    def test_first_epoch_without_flag(self):
        stv = self.mark.process(self.t0, self.epoch(0.0))
        self.assertEqual(stv["G01"][ARC], 1.0)


if __name__ == '__main__':
    unittest.main()
