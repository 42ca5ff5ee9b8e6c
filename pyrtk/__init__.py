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
PyRTK - Real-time differential GNSS positioning

Single-epoch RTK with rover-base single differences, Melbourne-Wubbena
cycle slip detection and LAMBDA integer ambiguity resolution.
"""

__version__ = "1.0.0"
__author__ = "PyRTK Development Team"
__title__ = "pyrtk"
__description__ = "Real-time differential GNSS (RTK) positioning engine"

from . import logger
from .core import *
from .io import *
from .rtk import *
