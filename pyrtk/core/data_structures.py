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

"""Observation containers exchanged between processing steps"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

import numpy as np

from .exceptions import InvalidRequest
from .satellite import SatelliteSystem, SatID
from .time import CommonTime
from .type_id import TypeID


class TypeValueMap(dict):
    """
    Quantities observed or derived for one satellite, keyed by TypeID

    ``get`` returns ``None`` for absent quantities so per-satellite loops can
    test presence without exceptions; ``require`` raises instead.
    """

    def __init__(self, *args, **kwargs):
        super().__init__()
        self.update(*args, **kwargs)

    def __setitem__(self, key, value):
        super().__setitem__(TypeID(key), float(value))

    def __getitem__(self, key):
        return super().__getitem__(TypeID(key))

    def __contains__(self, key):
        return super().__contains__(TypeID(key))

    def __delitem__(self, key):
        super().__delitem__(TypeID(key))

    def update(self, *args, **kwargs):
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def get(self, key, default=None) -> Optional[float]:
        return super().get(TypeID(key), default)

    def pop(self, key, *default):
        return super().pop(TypeID(key), *default)

    def require(self, key) -> float:
        value = self.get(key)
        if value is None:
            raise InvalidRequest(f"Type {key} not found")
        return value

    def has_all(self, types: Iterable[TypeID]) -> bool:
        return all(t in self for t in types)

    def copy(self) -> "TypeValueMap":
        return TypeValueMap(self)


class SatTypeValueMap(dict):
    """
    Observation maps of every satellite tracked in one epoch

    Keys are SatID; ``"G01"`` style strings are accepted wherever a key is.
    """

    @staticmethod
    def _key(sat):
        if isinstance(sat, str):
            return SatID.from_string(sat)
        return sat

    def __setitem__(self, sat, tvmap):
        if not isinstance(sat, SatID):
            sat = SatID.from_string(sat)
        if not isinstance(tvmap, TypeValueMap):
            tvmap = TypeValueMap(tvmap)
        super().__setitem__(sat, tvmap)

    def __getitem__(self, sat):
        return super().__getitem__(self._key(sat))

    def __contains__(self, sat):
        return super().__contains__(self._key(sat))

    def __delitem__(self, sat):
        super().__delitem__(self._key(sat))

    def get(self, sat, default=None) -> Optional[TypeValueMap]:
        return super().get(self._key(sat), default)

    def pop(self, sat, *default):
        return super().pop(self._key(sat), *default)

    @classmethod
    def from_dict(cls, data: Dict) -> "SatTypeValueMap":
        """Build from ``{"G01": {"C1G": ...}}`` style nested dicts"""
        stv = cls()
        for sat, values in data.items():
            stv[sat] = values
        return stv

    @property
    def sat_ids(self) -> List[SatID]:
        return sorted(self.keys())

    def sats_of(self, system: SatelliteSystem) -> List[SatID]:
        return [sat for sat in self.sat_ids if sat.system == system]

    def num_sats(self, system: Optional[SatelliteSystem] = None) -> int:
        if system is None:
            return len(self)
        return sum(1 for sat in self if sat.system == system)

    def systems(self) -> Set[SatelliteSystem]:
        return {sat.system for sat in self}

    def remove_sat_ids(self, sats: Iterable[SatID]) -> int:
        """Remove satellites, ignoring ones not present; returns the number removed"""
        removed = 0
        for sat in list(sats):
            if self.pop(sat, None) is not None:
                removed += 1
        return removed

    def keep_only_systems(self, systems: Iterable[SatelliteSystem]) -> int:
        keep = set(systems)
        return self.remove_sat_ids([sat for sat in self if sat.system not in keep])

    def extract_type(self, type_id) -> Dict[SatID, float]:
        """Values of one quantity for the satellites that carry it"""
        type_id = TypeID(type_id)
        return {sat: tv[type_id] for sat, tv in sorted(self.items()) if type_id in tv}

    def copy(self) -> "SatTypeValueMap":
        stv = SatTypeValueMap()
        for sat, tv in self.items():
            stv[sat] = tv.copy()
        return stv


@dataclass
class ReceiverEpoch:
    """One epoch of one receiver as delivered by an observation provider"""
    time: CommonTime
    observations: SatTypeValueMap
    position: Optional[np.ndarray] = None  # a priori receiver position, ECEF (m)
    receiver: str = ""

    def num_sats(self) -> int:
        return self.observations.num_sats()
