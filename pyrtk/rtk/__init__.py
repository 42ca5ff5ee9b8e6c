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

"""Differencing, cycle slips, equations, ambiguity resolution and the RTK chain"""

from .cycle_slip import MWCycleSlipDetector, MWState
from .differencer import AMBIGUITY_MARKER, ObservationDifferencer
from .equations import EpochContext, Equation, EquationSystem, Term, Variable
from .lambda_resolver import LambdaResolver, mlambda
from .lsq_rtk import AmbiguityFixResult, LsqRTK, RTKSolution, WeightedLeastSquares
from .lsq_spp import LsqSPP, SPPSolution
from .rtk_processor import EpochReport, RTKProcessor

__all__ = [
    'MWCycleSlipDetector', 'MWState',
    'AMBIGUITY_MARKER', 'ObservationDifferencer',
    'EpochContext', 'Equation', 'EquationSystem', 'Term', 'Variable',
    'LambdaResolver', 'mlambda',
    'AmbiguityFixResult', 'LsqRTK', 'RTKSolution', 'WeightedLeastSquares',
    'LsqSPP', 'SPPSolution',
    'EpochReport', 'RTKProcessor',
]
