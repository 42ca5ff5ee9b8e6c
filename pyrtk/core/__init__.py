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

"""Core identifiers, containers, configuration and errors"""

from .config import RTKConfig
from .data_structures import ReceiverEpoch, SatTypeValueMap, TypeValueMap
from .exceptions import (
    AmbiguityResolutionError,
    EndOfData,
    InvalidEquationSystem,
    InvalidRequest,
    InvalidSolver,
    MalformedRecord,
    RTKError,
)
from .satellite import SatelliteSystem, SatID
from .time import CommonTime, TimeSystem
from .type_id import TypeID

__all__ = [
    'RTKConfig',
    'ReceiverEpoch', 'SatTypeValueMap', 'TypeValueMap',
    'RTKError', 'InvalidRequest', 'InvalidEquationSystem', 'InvalidSolver',
    'AmbiguityResolutionError', 'EndOfData', 'MalformedRecord',
    'SatelliteSystem', 'SatID',
    'CommonTime', 'TimeSystem',
    'TypeID',
]
