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

"""
Observation name mapping and carrier phase scaling
==================================================

Receivers report several tracking modes per band (``C1C`` and ``C1W`` for
GPS L1). The equations use one short name per band, ``C1G``, so each
long name ``<kind><band><attribute><system>`` is mapped onto the short
``<kind><band><system>`` following a priority list; the first long name
present wins and every long name of the list is dropped afterwards.

Phases delivered in cycles are scaled to metres with the carrier
wavelength of their band.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..core.data_structures import SatTypeValueMap
from ..core.satellite import SatelliteSystem
from ..core.type_id import TypeID
from .frequency import get_wavelength

logger = logging.getLogger(__name__)


def short_name(long_name: str) -> TypeID:
    """``C1WG`` -> ``C1G``"""
    return TypeID(long_name[:2] + long_name[3])


def is_phase(type_id: TypeID, system: SatelliteSystem) -> bool:
    name = type_id.name
    return (len(name) == 3 and name[0] == 'L' and name[1].isdigit()
            and name[2] == system.char)


class ConvertObs:
    """
    Map long observation names and scale phases of an epoch in place

    Parameters
    ----------
    priority_types : dict, optional
        Long names per system, in order of preference
    phase_in_cycles : bool
        Carrier phases are given in cycles
    """

    def __init__(self, priority_types: Optional[Dict[SatelliteSystem, Iterable[str]]] = None,
                 phase_in_cycles: bool = False):
        self.priority_types: Dict[SatelliteSystem, List[TypeID]] = {}
        for system, names in (priority_types or {}).items():
            for name in names:
                self.add_priority_type(system, name)
        self.phase_in_cycles = phase_in_cycles

    def add_priority_type(self, system: SatelliteSystem, long_name: str):
        types = self.priority_types.setdefault(SatelliteSystem.parse(system), [])
        type_id = TypeID(long_name)
        if type_id not in types:
            types.append(type_id)

    def map_types(self, stv: SatTypeValueMap) -> SatTypeValueMap:
        for sat, tvmap in stv.items():
            for long_type in self.priority_types.get(sat.system, ()):
                value = tvmap.pop(long_type, None)
                if value is None:
                    continue
                short = short_name(long_type.name)
                if short not in tvmap:
                    tvmap[short] = value
        return stv

    def scale_phases(self, stv: SatTypeValueMap) -> SatTypeValueMap:
        for sat, tvmap in stv.items():
            for type_id in [t for t in tvmap if is_phase(t, sat.system)]:
                wavelength = get_wavelength(sat, int(type_id.name[1]))
                if wavelength == 0.0:
                    logger.debug(f"{sat}: no wavelength for {type_id}, removed")
                    del tvmap[type_id]
                    continue
                tvmap[type_id] *= wavelength
        return stv

    def process(self, stv: SatTypeValueMap) -> SatTypeValueMap:
        self.map_types(stv)
        if self.phase_in_cycles:
            self.scale_phases(stv)
        return stv
