"""Tests for WGS84 geometry helpers"""

import numpy as np
import pytest

from pyrtk.core.constants import RE_WGS84
from pyrtk.gnss.geometry import (
    ecef2enu, ecef2llh, elevation_azimuth, enu_rotation, llh2ecef,
)

TOKYO = np.array([np.radians(35.71), np.radians(139.81), 45.0])


def test_equator_prime_meridian():
    np.testing.assert_allclose(llh2ecef(np.array([0.0, 0.0, 0.0])), [RE_WGS84, 0.0, 0.0])
    np.testing.assert_allclose(ecef2llh(np.array([RE_WGS84, 0.0, 0.0])), [0.0, 0.0, 0.0],
                               atol=1e-9)


@pytest.mark.parametrize("llh", [
    TOKYO,
    np.array([np.radians(-33.9), np.radians(18.4), 1200.0]),
    np.array([np.radians(78.2), np.radians(-15.6), -20.0]),
])
def test_round_trip(llh):
    result = ecef2llh(llh2ecef(llh))
    np.testing.assert_allclose(result[:2], llh[:2], atol=1e-11)
    assert result[2] == pytest.approx(llh[2], abs=1e-4)


def test_pole():
    llh = ecef2llh(np.array([0.0, 0.0, 6356752.3142]))
    assert llh[0] == pytest.approx(np.pi / 2)
    assert llh[2] == pytest.approx(0.0, abs=1e-3)


def test_rotation_is_orthonormal():
    R = enu_rotation(TOKYO)
    np.testing.assert_allclose(R @ R.T, np.eye(3), atol=1e-12)
    # Up axis points along the ellipsoid normal
    np.testing.assert_allclose(R[2], llh2ecef(TOKYO + [0, 0, 1.0]) - llh2ecef(TOKYO), atol=1e-6)


def test_ecef2enu():
    origin = llh2ecef(TOKYO)
    offset = np.array([10.0, -5.0, 2.0])
    point = origin + enu_rotation(TOKYO).T @ offset
    np.testing.assert_allclose(ecef2enu(point, origin), offset, atol=1e-6)


@pytest.mark.parametrize("azimuth,elevation", [(30.0, 75.0), (200.0, 12.0), (359.0, 45.0)])
def test_elevation_azimuth(azimuth, elevation):
    origin = llh2ecef(TOKYO)
    az, el = np.radians(azimuth), np.radians(elevation)
    enu = 2.0e7 * np.array([np.cos(el) * np.sin(az), np.cos(el) * np.cos(az), np.sin(el)])
    sat = origin + enu_rotation(TOKYO).T @ enu
    result_el, result_az = elevation_azimuth(sat, origin)
    assert result_el == pytest.approx(elevation, abs=1e-6)
    assert result_az == pytest.approx(azimuth, abs=1e-6)


def test_satellite_below_horizon():
    origin = llh2ecef(TOKYO)
    elevation, _ = elevation_azimuth(-origin, origin)
    assert elevation < -89.0
