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

"""Signal, geometry and observation preparation helpers"""

from .combinations import ComputeCombination, LinearCombination, mw_combination
from .convert_obs import ConvertObs
from .derivative import ComputeDerivative
from .filters import KeepSystems, MarkArc, RequiredObs
from .frequency import get_frequency, get_wavelength, variance_of_mw, wavelength_of_mw
from .prefit import ComputePrefit, prefit_combination
from .weights import ComputeElevWeights

__all__ = [
    'ComputeCombination', 'LinearCombination', 'mw_combination',
    'ConvertObs',
    'ComputeDerivative',
    'KeepSystems', 'MarkArc', 'RequiredObs',
    'get_frequency', 'get_wavelength', 'variance_of_mw', 'wavelength_of_mw',
    'ComputePrefit', 'prefit_combination',
    'ComputeElevWeights',
]
