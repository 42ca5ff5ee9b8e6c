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

"""Prefit residuals: observation minus modelled range"""

from ..core.satellite import SatelliteSystem
from ..core.type_id import CDT_SAT, GRAV_DELAY, RELATIVITY, RHO, TROPO_SLANT, TypeID
from .combinations import ComputeCombination, LinearCombination


def prefit_combination(observable: TypeID) -> LinearCombination:
    """
    ``prefit<obs> = obs - rho + cdtSat - tropoSlant - relativity - gravDelay``

    Only the observable and ``rho`` are required, missing corrections count
    as zero.
    """
    observable = TypeID(observable)
    combination = LinearCombination(
        header=observable.prefit(),
        body={observable: 1.0, RHO: -1.0},
    )
    combination.add_optional_type(CDT_SAT, 1.0)
    combination.add_optional_type(TROPO_SLANT, -1.0)
    combination.add_optional_type(RELATIVITY, -1.0)
    combination.add_optional_type(GRAV_DELAY, -1.0)
    return combination


class ComputePrefit(ComputeCombination):
    """Compute prefit residuals of the registered observables"""

    def add_observable(self, system: SatelliteSystem, observable: TypeID) -> TypeID:
        combination = prefit_combination(observable)
        self.add_linear(system, combination)
        return combination.header
