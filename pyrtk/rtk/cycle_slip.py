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
Melbourne-Wubbena cycle slip detection
======================================

The MW combination removes geometry, clocks and the ionosphere, leaving the
wide-lane ambiguity plus noise. A running mean and variance are kept per
(satellite, combination); a sample far from the mean, a data gap or the
first sample of a pair starts a new arc.

Slip triggers:
    - time since the previous sample exceeds ``delta_t_max``
    - ``|MW - mean| > |min_cycles * wide-lane wavelength|``
    - ``|MW - mean| > 4 * sqrt(variance)``
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from ..core.constants import MW_DELTA_T_MAX, MW_MIN_CYCLES, MW_OUTLIER_SIGMA
from ..core.data_structures import SatTypeValueMap
from ..core.satellite import SatelliteSystem, SatID
from ..core.type_id import TypeID, cs_flag_type, parse_mw_type
from ..gnss.frequency import variance_of_mw, wavelength_of_mw

logger = logging.getLogger(__name__)


@dataclass
class MWState:
    """Running statistics of one (satellite, MW combination) pair"""
    former_epoch: Optional[object] = None
    mean: float = 0.0
    variance: float = 0.0
    window_size: int = 0
    m2: float = 0.0  # Welford sum of squared deviations since the last reset

    def reset(self, value: float, variance: float):
        self.mean = value
        self.variance = variance
        self.window_size = 1
        self.m2 = 0.0

    @property
    def sample_mean(self) -> float:
        return self.mean

    @property
    def population_variance(self) -> float:
        if self.window_size == 0:
            return 0.0
        return self.m2 / self.window_size

    @property
    def sample_variance(self) -> float:
        if self.window_size < 2:
            return 0.0
        return self.m2 / (self.window_size - 1)


class MWCycleSlipDetector:
    """
    Cycle slip detector on Melbourne-Wubbena combinations

    Parameters
    ----------
    delta_t_max : float
        Largest gap (s) between samples that keeps the arc open
    min_cycles : float
        Slip threshold in wide-lane cycles
    """

    def __init__(self, delta_t_max: float = MW_DELTA_T_MAX,
                 min_cycles: float = MW_MIN_CYCLES):
        self.delta_t_max = delta_t_max
        self.min_cycles = min_cycles
        self.mw_types: Dict[SatelliteSystem, List[TypeID]] = {}
        self.states: Dict[Tuple[SatID, TypeID], MWState] = {}
        # (wavelength, initial variance, flag types) per MW type
        self._type_info: Dict[TypeID, Tuple[float, float, Tuple[TypeID, TypeID]]] = {}

    def add_type(self, system: SatelliteSystem, mw: TypeID):
        """Monitor combination ``mw`` (e.g. ``MW21G``) for satellites of ``system``"""
        mw = TypeID(mw)
        band_a, band_b, mw_system = parse_mw_type(mw)
        wavelength = wavelength_of_mw(mw_system, band_a, band_b)
        if wavelength == 0.0:
            raise ValueError(f"Unsupported MW combination {mw}")
        self._type_info[mw] = (
            wavelength,
            variance_of_mw(mw_system, band_a, band_b),
            (cs_flag_type(band_a, mw_system), cs_flag_type(band_b, mw_system)),
        )
        types = self.mw_types.setdefault(SatelliteSystem.parse(system), [])
        if mw not in types:
            types.append(mw)

    def state(self, sat: SatID, mw: TypeID) -> Optional[MWState]:
        return self.states.get((sat, TypeID(mw)))

    def detect(self, sat: SatID, mw: TypeID, epoch, value: float,
               wavelength: float, input_variance: float) -> bool:
        """
        Update the statistics of one pair with a new sample

        Returns
        -------
        bool
            True if a cycle slip is declared (the state is then reset)
        """
        state = self.states.setdefault((sat, mw), MWState())

        if state.former_epoch is None:
            delta_t = math.inf
        else:
            delta_t = epoch - state.former_epoch
        state.former_epoch = epoch

        bias = abs(value - state.mean)
        state.window_size += 1

        slip = (delta_t > self.delta_t_max
                or bias > abs(self.min_cycles * wavelength)
                or bias > MW_OUTLIER_SIGMA * math.sqrt(state.variance))

        if slip:
            if math.isfinite(delta_t):
                logger.debug(f"{sat} {mw}: cycle slip at {epoch} "
                             f"(dt={delta_t:.1f}s, bias={bias:.3f}m)")
            state.reset(value, input_variance)
            return True

        n = state.window_size
        deviation = value - state.mean
        state.mean += deviation / n
        state.variance += (deviation * deviation - state.variance) / n
        state.m2 += deviation * (value - state.mean)
        return False

    def process(self, epoch, stv: SatTypeValueMap) -> Set[Tuple[SatID, TypeID]]:
        """
        Run every configured combination and write per-band slip flags

        Returns
        -------
        Set[Tuple[SatID, TypeID]]
            Pairs that slipped (including pairs seen for the first time)
        """
        slipped = set()
        for sat, tvmap in stv.items():
            for mw in self.mw_types.get(sat.system, []):
                value = tvmap.get(mw)
                if value is None:
                    logger.trace(f"{sat}: no {mw}, skipped")
                    continue
                wavelength, input_variance, flag_types = self._type_info[mw]
                flag = 1.0 if self.detect(sat, mw, epoch, value,
                                          wavelength, input_variance) else 0.0
                if flag:
                    slipped.add((sat, mw))
                for flag_type in flag_types:
                    tvmap[flag_type] = max(flag, tvmap.get(flag_type) or 0.0)
        return slipped

    def reset(self):
        self.states.clear()
