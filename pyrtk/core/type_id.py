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
Quantity identifiers
====================

Observation maps are keyed by ``TypeID`` values: code ``C1G``, phase
``L2C``, prefit residual ``prefitC1G``, differenced prefit
``prefitC1GDiff``, ambiguity ``N1`` and so on. The set is open: any
string read from a data file or built at runtime is a valid identifier.

Instances are interned, so two ``TypeID("C1G")`` are the same object and
compare, hash and sort by name.

Naming scheme
-------------
``<kind><band><system char>`` for observations (``C1G``, ``L6C``),
``prefit`` prefix for prefit residuals, ``Diff`` suffix for rover-base
differences, ``MW<a><b><system>`` for Melbourne-Wubbena combinations and
``CSFlagL<band><system>`` for per-band cycle-slip flags.
"""

from functools import total_ordering
from typing import Dict, Tuple

from .satellite import SatelliteSystem


@total_ordering
class TypeID:
    """Interned, totally ordered quantity identifier"""

    __slots__ = ('name',)
    _registry: Dict[str, "TypeID"] = {}

    def __new__(cls, name):
        if isinstance(name, TypeID):
            return name
        if not isinstance(name, str) or not name:
            raise ValueError(f"TypeID name must be a non-empty string, got {name!r}")
        instance = cls._registry.get(name)
        if instance is None:
            instance = super().__new__(cls)
            object.__setattr__(instance, 'name', name)
            cls._registry[name] = instance
        return instance

    def __setattr__(self, key, value):
        raise AttributeError("TypeID is immutable")

    def __reduce__(self):
        return (TypeID, (self.name,))

    def __eq__(self, other):
        if isinstance(other, TypeID):
            return self.name == other.name
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, TypeID):
            return self.name < other.name
        return NotImplemented

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return f"TypeID({self.name!r})"

    def __str__(self):
        return self.name

    def diff(self) -> "TypeID":
        """Identifier of the rover-base difference of this quantity"""
        return TypeID(self.name + "Diff")

    def prefit(self) -> "TypeID":
        """Identifier of the prefit residual built from this observable"""
        return TypeID("prefit" + self.name)

    @classmethod
    def registered(cls) -> Tuple["TypeID", ...]:
        return tuple(sorted(cls._registry.values()))


def obs_type(kind: str, band: int, system: SatelliteSystem) -> TypeID:
    """Observation identifier, e.g. ``obs_type('C', 1, GPS)`` -> ``C1G``"""
    return TypeID(f"{kind}{band}{system.char}")


def mw_type(band_a: int, band_b: int, system: SatelliteSystem) -> TypeID:
    return TypeID(f"MW{band_a}{band_b}{system.char}")


def cs_flag_type(band: int, system: SatelliteSystem) -> TypeID:
    return TypeID(f"CSFlagL{band}{system.char}")


def clock_type(system: SatelliteSystem) -> TypeID:
    """Receiver clock unknown of one system, ``dcdtGPS`` style"""
    return TypeID(f"dcdt{system.name}")


def parse_mw_type(mw: TypeID) -> Tuple[int, int, SatelliteSystem]:
    """Split ``MW21G`` into (2, 1, GPS)"""
    name = mw.name
    if len(name) != 5 or not name.startswith("MW"):
        raise ValueError(f"Not a Melbourne-Wubbena identifier: {name}")
    return int(name[2]), int(name[3]), SatelliteSystem.from_char(name[4])


# Geometry and receiver unknowns
DX = TypeID("dX")
DY = TypeID("dY")
DZ = TypeID("dZ")
RHO = TypeID("rho")
ELEVATION = TypeID("elevation")
AZIMUTH = TypeID("azimuth")
WEIGHT = TypeID("weight")
ARC = TypeID("arc")
IONO = TypeID("iono")  # slant delay on the first band (m)

# Satellite state supplied upstream
SAT_X = TypeID("satXECEF")
SAT_Y = TypeID("satYECEF")
SAT_Z = TypeID("satZECEF")
CDT_SAT = TypeID("cdtSat")
TROPO_SLANT = TypeID("tropoSlant")
RELATIVITY = TypeID("relativity")
GRAV_DELAY = TypeID("gravDelay")

# Ambiguity markers and unknowns
N1 = TypeID("N1")
N2 = TypeID("N2")

# Commonly used observables of the dual-frequency GPS/BDS setup
C1G = TypeID("C1G")
C2G = TypeID("C2G")
L1G = TypeID("L1G")
L2G = TypeID("L2G")
C2C = TypeID("C2C")
C6C = TypeID("C6C")
L2C = TypeID("L2C")
L6C = TypeID("L6C")
MW21G = TypeID("MW21G")
MW62C = TypeID("MW62C")
