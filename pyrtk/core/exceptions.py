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

"""Exceptions raised by the RTK engine"""


class RTKError(Exception):
    """Base class of every pyrtk error"""


class InvalidRequest(RTKError):
    """A quantity, unknown or setting that was asked for is not available"""


class InvalidEquationSystem(RTKError):
    """Equation assembly produced no rows or no unknowns"""


class InvalidSolver(RTKError):
    """The normal matrix of the least-squares problem cannot be inverted"""


class AmbiguityResolutionError(RTKError):
    """The integer search could not produce candidates"""


class EndOfData(RTKError):
    """An observation provider is exhausted; normal end of processing"""


class MalformedRecord(RTKError):
    """An observation provider hit a corrupt record"""
