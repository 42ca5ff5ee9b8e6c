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

"""Geometric range and partial derivatives of the observation equations"""

import logging

import numpy as np

from ..core.constants import MIN_ELEVATION
from ..core.data_structures import SatTypeValueMap
from ..core.type_id import (
    AZIMUTH, DX, DY, DZ, ELEVATION, RHO, SAT_X, SAT_Y, SAT_Z, clock_type,
)
from .geometry import elevation_azimuth

logger = logging.getLogger(__name__)


class ComputeDerivative:
    """
    Write range, direction cosines and elevation for each satellite

    Satellite positions are read from ``satXECEF/satYECEF/satZECEF``.
    Satellites without a position, or below the elevation mask, are removed.

    Parameters
    ----------
    rx_pos : np.ndarray
        A priori receiver ECEF position (m)
    min_elevation : float
        Elevation mask (deg)
    """

    def __init__(self, rx_pos=None, min_elevation: float = MIN_ELEVATION):
        self.rx_pos = None if rx_pos is None else np.asarray(rx_pos, dtype=float)
        self.min_elevation = min_elevation

    def set_coordinates(self, rx_pos):
        self.rx_pos = np.asarray(rx_pos, dtype=float)

    def process(self, stv: SatTypeValueMap) -> SatTypeValueMap:
        if self.rx_pos is None:
            raise ValueError("Receiver coordinates must be set before computing derivatives")

        rejected = []
        for sat, tvmap in stv.items():
            x, y, z = tvmap.get(SAT_X), tvmap.get(SAT_Y), tvmap.get(SAT_Z)
            if x is None or y is None or z is None:
                rejected.append(sat)
                continue
            sv = np.array([x, y, z])
            rho = float(np.linalg.norm(sv - self.rx_pos))
            elevation, azimuth = elevation_azimuth(sv, self.rx_pos)
            if elevation < self.min_elevation:
                rejected.append(sat)
                continue

            cosines = (self.rx_pos - sv) / rho
            tvmap[RHO] = rho
            tvmap[DX] = cosines[0]
            tvmap[DY] = cosines[1]
            tvmap[DZ] = cosines[2]
            tvmap[ELEVATION] = elevation
            tvmap[AZIMUTH] = azimuth
            tvmap[clock_type(sat.system)] = 1.0

        if rejected:
            logger.debug(f"Derivatives: removed {', '.join(str(s) for s in sorted(rejected))}")
        stv.remove_sat_ids(rejected)
        return stv
