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

"""Satellite filters and arc bookkeeping applied to an epoch"""

import logging
from typing import Dict, Iterable, List, Optional

from ..core.data_structures import SatTypeValueMap
from ..core.satellite import SatelliteSystem, SatID
from ..core.time import CommonTime
from ..core.type_id import ARC, TypeID

logger = logging.getLogger(__name__)


class KeepSystems:
    """Drop satellites of constellations that are not processed"""

    def __init__(self, systems: Iterable[SatelliteSystem]):
        self.systems = [SatelliteSystem.parse(s) for s in systems]

    def process(self, stv: SatTypeValueMap) -> SatTypeValueMap:
        removed = stv.keep_only_systems(self.systems)
        if removed:
            logger.trace(f"KeepSystems: removed {removed} satellites")
        return stv


class RequiredObs:
    """Drop satellites lacking any of the observables required for their system"""

    def __init__(self):
        self.required: Dict[SatelliteSystem, List[TypeID]] = {}

    def add_required_type(self, system: SatelliteSystem, type_id: TypeID):
        types = self.required.setdefault(system, [])
        type_id = TypeID(type_id)
        if type_id not in types:
            types.append(type_id)

    def process(self, stv: SatTypeValueMap) -> SatTypeValueMap:
        rejected = [sat for sat, tvmap in stv.items()
                    if sat.system in self.required
                    and not tvmap.has_all(self.required[sat.system])]
        if rejected:
            logger.debug(f"RequiredObs: removed {', '.join(map(str, sorted(rejected)))}")
        stv.remove_sat_ids(rejected)
        return stv


class MarkArc:
    """
    Count continuous phase arcs per satellite

    The arc number increases whenever any ``CSFlag*`` entry of the satellite
    is set; it is written to the ``arc`` entry of the observation map.
    """

    def __init__(self):
        self.arcs: Dict[SatID, int] = {}
        self.arc_start: Dict[SatID, Optional[CommonTime]] = {}

    def process(self, epoch: CommonTime, stv: SatTypeValueMap) -> SatTypeValueMap:
        for sat, tvmap in stv.items():
            slipped = any(value != 0.0 for key, value in tvmap.items()
                          if key.name.startswith("CSFlag"))
            if sat not in self.arcs:
                self.arcs[sat] = 1
                self.arc_start[sat] = epoch
            elif slipped:
                self.arcs[sat] += 1
                self.arc_start[sat] = epoch
                logger.debug(f"{sat}: new arc {self.arcs[sat]} at {epoch}")
            tvmap[ARC] = self.arcs[sat]
        return stv
