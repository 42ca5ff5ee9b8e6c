# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Receiver/satellite geometry on the WGS84 ellipsoid"""

from typing import Tuple

import numpy as np

from ..core.constants import FE_WGS84, RE_WGS84

_E2 = FE_WGS84 * (2.0 - FE_WGS84)


def ecef2llh(xyz: np.ndarray) -> np.ndarray:
    """
    Convert ECEF coordinates to geodetic [lat (rad), lon (rad), height (m)]

    Iterative; converges in a handful of steps for terrestrial points.
    """
    x, y, z = xyz[0], xyz[1], xyz[2]
    lon = np.arctan2(y, x)
    p = np.hypot(x, y)
    if p < 1e-9:
        # On the polar axis
        lat = np.copysign(np.pi / 2.0, z)
        return np.array([lat, 0.0, abs(z) - RE_WGS84 * (1.0 - FE_WGS84)])

    lat = np.arctan2(z, p * (1.0 - _E2))
    h = 0.0
    for _ in range(10):
        n = RE_WGS84 / np.sqrt(1.0 - _E2 * np.sin(lat) ** 2)
        h = p / np.cos(lat) - n
        new_lat = np.arctan2(z, p * (1.0 - _E2 * n / (n + h)))
        if abs(new_lat - lat) < 1e-12:
            lat = new_lat
            break
        lat = new_lat
    return np.array([lat, lon, h])


def llh2ecef(llh: np.ndarray) -> np.ndarray:
    """Convert geodetic [lat (rad), lon (rad), height (m)] to ECEF"""
    lat, lon, h = llh[0], llh[1], llh[2]
    n = RE_WGS84 / np.sqrt(1.0 - _E2 * np.sin(lat) ** 2)
    return np.array([
        (n + h) * np.cos(lat) * np.cos(lon),
        (n + h) * np.cos(lat) * np.sin(lon),
        (n * (1.0 - _E2) + h) * np.sin(lat),
    ])


def enu_rotation(llh: np.ndarray) -> np.ndarray:
    """Rotation from ECEF vectors to local east/north/up"""
    sin_lat, cos_lat = np.sin(llh[0]), np.cos(llh[0])
    sin_lon, cos_lon = np.sin(llh[1]), np.cos(llh[1])
    return np.array([
        [-sin_lon, cos_lon, 0.0],
        [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
        [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat],
    ])


def ecef2enu(xyz: np.ndarray, origin_xyz: np.ndarray) -> np.ndarray:
    """ENU offset (m) of ``xyz`` from an ECEF origin"""
    origin_xyz = np.asarray(origin_xyz, dtype=float)
    return enu_rotation(ecef2llh(origin_xyz)) @ (np.asarray(xyz, dtype=float) - origin_xyz)


def elevation_azimuth(sat_pos: np.ndarray, rcv_pos: np.ndarray) -> Tuple[float, float]:
    """
    Elevation and azimuth of a satellite seen from a receiver

    Parameters
    ----------
    sat_pos : np.ndarray
        Satellite ECEF position (m)
    rcv_pos : np.ndarray
        Receiver ECEF position (m)

    Returns
    -------
    Tuple[float, float]
        Elevation and azimuth in degrees, azimuth in [0, 360)
    """
    enu = ecef2enu(sat_pos, rcv_pos)
    horizontal = np.hypot(enu[0], enu[1])
    elevation = np.degrees(np.arctan2(enu[2], horizontal))
    azimuth = np.degrees(np.arctan2(enu[0], enu[1])) % 360.0
    return float(elevation), float(azimuth)
