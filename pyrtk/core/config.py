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

"""Processing configuration"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Tuple, Union

import yaml

from . import constants as const
from .exceptions import InvalidRequest
from .satellite import SatelliteSystem

# Carrier bands (first, second) used for the dual-frequency equations
DEFAULT_BANDS: Dict[SatelliteSystem, Tuple[int, int]] = {
    SatelliteSystem.GPS: (1, 2),
    SatelliteSystem.GALILEO: (1, 5),
    SatelliteSystem.BDS: (2, 6),
    SatelliteSystem.QZSS: (1, 2),
}


@dataclass
class RTKConfig:
    """
    Settings of the RTK pipeline

    ``systems`` selects the constellations that enter the equations;
    ``bands`` overrides the two carrier bands used per system. The
    Melbourne-Wubbena combination monitored for each system is built from
    the same two bands, second band first (``MW21G`` for GPS, ``MW62C``
    for BDS).

    ``priority_types`` maps long observation names (``C1CG``: kind, band,
    RINEX attribute, system) onto the short names of the equations, the
    first one present winning. ``phase_in_cycles`` scales carrier phases
    given in cycles to metres. Rover epochs without a position are located
    by single point positioning, iterated at most ``spp_max_iterations``
    times until the correction drops below ``spp_convergence`` metres.
    """
    systems: List[SatelliteSystem] = field(
        default_factory=lambda: [SatelliteSystem.GPS, SatelliteSystem.BDS])
    bands: Dict[SatelliteSystem, Tuple[int, int]] = field(
        default_factory=lambda: dict(DEFAULT_BANDS))
    code_sigma: float = const.CODE_SIGMA
    phase_sigma: float = const.PHASE_SIGMA
    min_elevation: float = const.MIN_ELEVATION
    elevation_weight_exponent: float = 2.0
    ratio_threshold: float = const.RATIO_THRESHOLD
    ncands: int = const.LAMBDA_NCANDS
    max_search_loops: int = const.LAMBDA_LOOPMAX
    mw_delta_t_max: float = const.MW_DELTA_T_MAX
    mw_min_cycles: float = const.MW_MIN_CYCLES
    min_sats: int = 4
    strict: bool = False
    priority_types: Dict[SatelliteSystem, List[str]] = field(default_factory=dict)
    phase_in_cycles: bool = False
    spp_max_iterations: int = const.SPP_MAX_ITERATIONS
    spp_convergence: float = const.SPP_CONVERGENCE

    def __post_init__(self):
        self.systems = [SatelliteSystem.parse(s) for s in self.systems]
        self.bands = {SatelliteSystem.parse(s): tuple(b) for s, b in self.bands.items()}
        self.priority_types = {SatelliteSystem.parse(s): list(t)
                               for s, t in self.priority_types.items()}
        self.validate()

    def validate(self):
        if not self.systems:
            raise InvalidRequest("At least one satellite system is required")
        for system in self.systems:
            if system not in self.bands:
                raise InvalidRequest(f"No carrier bands configured for {system.name}")
            first, second = self.bands[system]
            if first == second:
                raise InvalidRequest(f"{system.name} needs two distinct bands")
        if self.code_sigma <= 0.0 or self.phase_sigma <= 0.0:
            raise InvalidRequest("Observation sigmas must be positive")
        if self.ncands < 2:
            raise InvalidRequest("At least two candidates are needed for the ratio test")
        if self.max_search_loops <= 0:
            raise InvalidRequest("max_search_loops must be positive")
        for system, names in self.priority_types.items():
            for name in names:
                if len(name) != 4 or name[3] != system.char:
                    raise InvalidRequest(f"{name} is not a long {system.name} observation name")
        if self.spp_max_iterations < 1 or self.spp_convergence <= 0.0:
            raise InvalidRequest("SPP iteration settings must be positive")

    @property
    def code_weight(self) -> float:
        return 1.0 / self.code_sigma ** 2

    @property
    def phase_weight(self) -> float:
        return 1.0 / self.phase_sigma ** 2

    def bands_of(self, system: SatelliteSystem) -> Tuple[int, int]:
        return self.bands[system]

    @classmethod
    def from_dict(cls, config: dict) -> "RTKConfig":
        """Build from a plain dictionary, e.g. loaded from JSON or YAML"""
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            raise InvalidRequest(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**config)

    def to_dict(self) -> dict:
        """Plain representation, with systems and bands keyed by name"""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data['systems'] = [s.name for s in self.systems]
        data['bands'] = {s.name: list(b) for s, b in self.bands.items()}
        data['priority_types'] = {s.name: list(t) for s, t in self.priority_types.items()}
        return data

    @classmethod
    def load_from_file(cls, filepath: Union[str, Path]) -> "RTKConfig":
        """
        Load settings from a YAML (.yaml, .yml) or JSON (.json) file

        Raises
        ------
        ValueError
            If the file extension is not supported
        InvalidRequest
            If the file holds unknown keys or invalid values
        """
        filepath = Path(filepath)
        if filepath.suffix in ['.yaml', '.yml']:
            with open(filepath) as f:
                data = yaml.safe_load(f)
        elif filepath.suffix == '.json':
            with open(filepath) as f:
                data = json.load(f)
        else:
            raise ValueError(f"Unsupported file format: {filepath.suffix}")
        return cls.from_dict(data or {})

    def save_to_file(self, filepath: Union[str, Path], format: str = 'yaml'):
        filepath = Path(filepath)
        if format == 'yaml':
            with open(filepath, 'w') as f:
                yaml.dump(self.to_dict(), f, default_flow_style=False)
        elif format == 'json':
            with open(filepath, 'w') as f:
                json.dump(self.to_dict(), f, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")
