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

"""Elevation dependent observation weights"""

import logging

import numpy as np

from ..core.constants import FULL_WEIGHT_ELEVATION
from ..core.data_structures import SatTypeValueMap
from ..core.type_id import ELEVATION, WEIGHT

logger = logging.getLogger(__name__)


class ComputeElevWeights:
    """
    Weight = 1 above ``full_weight_elevation``, ``(2 sin(el))^exponent`` below

    Satellites without an elevation entry are removed.
    """

    def __init__(self, exponent: float = 2.0,
                 full_weight_elevation: float = FULL_WEIGHT_ELEVATION):
        self.exponent = exponent
        self.full_weight_elevation = full_weight_elevation

    def weight(self, elevation: float) -> float:
        if elevation > self.full_weight_elevation:
            return 1.0
        return float((2.0 * np.sin(np.radians(elevation))) ** self.exponent)

    def process(self, stv: SatTypeValueMap) -> SatTypeValueMap:
        rejected = []
        for sat, tvmap in stv.items():
            elevation = tvmap.get(ELEVATION)
            if elevation is None:
                rejected.append(sat)
                continue
            tvmap[WEIGHT] = self.weight(elevation)
        if rejected:
            logger.debug(f"Elevation weights: no elevation for {', '.join(map(str, sorted(rejected)))}")
        stv.remove_sat_ids(rejected)
        return stv
