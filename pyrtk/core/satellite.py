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

"""Satellite system and satellite identifiers"""

from dataclasses import dataclass
from enum import Enum

from .exceptions import InvalidRequest


class SatelliteSystem(Enum):
    """GNSS constellations, valued by their RINEX system character"""
    GPS = 'G'
    GLONASS = 'R'
    GALILEO = 'E'
    BDS = 'C'
    QZSS = 'J'
    SBAS = 'S'
    IRNSS = 'I'

    @property
    def char(self) -> str:
        return self.value

    @classmethod
    def from_char(cls, char: str) -> "SatelliteSystem":
        try:
            return cls(char.upper())
        except ValueError:
            raise InvalidRequest(f"Unknown satellite system '{char}'") from None

    @classmethod
    def parse(cls, text) -> "SatelliteSystem":
        """Accept an enum member, a system character or a member name"""
        if isinstance(text, cls):
            return text
        text = str(text).strip()
        if len(text) == 1:
            return cls.from_char(text)
        try:
            return cls[text.upper()]
        except KeyError:
            raise InvalidRequest(f"Unknown satellite system '{text}'") from None

    def __lt__(self, other):
        if not isinstance(other, SatelliteSystem):
            return NotImplemented
        return _SYSTEM_ORDER[self] < _SYSTEM_ORDER[other]


_SYSTEM_ORDER = {system: i for i, system in enumerate(SatelliteSystem)}


@dataclass(frozen=True, order=True)
class SatID:
    """
    Satellite identifier

    Ordered by system (G, R, E, C, J, S, I) then PRN; printed as ``G05``.
    """
    system: SatelliteSystem
    prn: int

    def __post_init__(self):
        if not isinstance(self.system, SatelliteSystem):
            object.__setattr__(self, 'system', SatelliteSystem.parse(self.system))
        if self.prn <= 0:
            raise InvalidRequest(f"Invalid PRN {self.prn}")

    @classmethod
    def from_string(cls, text: str) -> "SatID":
        """Parse ``G05``, ``C 6`` or ``R24``"""
        text = text.strip()
        if len(text) < 2:
            raise InvalidRequest(f"Cannot parse satellite id '{text}'")
        try:
            prn = int(text[1:])
        except ValueError:
            raise InvalidRequest(f"Cannot parse satellite id '{text}'") from None
        return cls(SatelliteSystem.from_char(text[0]), prn)

    def __str__(self):
        return f"{self.system.char}{self.prn:02d}"
