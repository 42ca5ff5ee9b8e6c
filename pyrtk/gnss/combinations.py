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

"""Linear combinations of observables"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core.data_structures import SatTypeValueMap, TypeValueMap
from ..core.satellite import SatelliteSystem
from ..core.type_id import TypeID, mw_type, obs_type
from .frequency import get_frequency

logger = logging.getLogger(__name__)


@dataclass
class LinearCombination:
    """
    ``header = sum(coef * obs[type])`` over the body

    Optional types contribute when present and count as zero otherwise.
    """
    header: TypeID
    body: Dict[TypeID, float] = field(default_factory=dict)
    optional: Dict[TypeID, float] = field(default_factory=dict)

    def add_optional_type(self, type_id: TypeID, coefficient: float = -1.0):
        self.optional[TypeID(type_id)] = coefficient

    def evaluate(self, tvmap: TypeValueMap) -> Optional[float]:
        """Value of the combination, None when a body type is missing"""
        total = 0.0
        for type_id, coef in self.body.items():
            value = tvmap.get(type_id)
            if value is None:
                return None
            total += coef * value
        for type_id, coef in self.optional.items():
            value = tvmap.get(type_id)
            if value is not None:
                total += coef * value
        return total


def mw_combination(system: SatelliteSystem, band_a: int, band_b: int) -> LinearCombination:
    """
    Melbourne-Wubbena combination ``MW<a><b>`` in meters

    Wide-lane phase minus narrow-lane code:
    ``(fa*La - fb*Lb)/(fa - fb) - (fa*Ca + fb*Cb)/(fa + fb)``
    with phases already scaled to meters.
    """
    fa = get_frequency(system, band_a)
    fb = get_frequency(system, band_b)
    if fa == 0.0 or fb == 0.0 or fa == fb:
        raise ValueError(f"No MW combination for {system.name} bands {band_a}/{band_b}")
    return LinearCombination(
        header=mw_type(band_a, band_b, system),
        body={
            obs_type('L', band_a, system): fa / (fa - fb),
            obs_type('L', band_b, system): -fb / (fa - fb),
            obs_type('C', band_a, system): -fa / (fa + fb),
            obs_type('C', band_b, system): -fb / (fa + fb),
        },
    )


class ComputeCombination:
    """Evaluate registered combinations for every satellite of their system"""

    def __init__(self):
        self.combinations: Dict[SatelliteSystem, List[LinearCombination]] = {}

    def add_linear(self, system: SatelliteSystem, combination: LinearCombination):
        self.combinations.setdefault(system, []).append(combination)

    def process(self, stv: SatTypeValueMap) -> SatTypeValueMap:
        for sat, tvmap in stv.items():
            for combination in self.combinations.get(sat.system, []):
                value = combination.evaluate(tvmap)
                if value is None:
                    logger.trace(f"{sat}: missing observables for {combination.header}")
                    continue
                tvmap[combination.header] = value
        return stv
