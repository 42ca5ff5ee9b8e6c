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

"""Between-receiver (rover - base) single differences"""

import logging
from typing import Dict, List, Set

from ..core.data_structures import SatTypeValueMap
from ..core.exceptions import InvalidRequest
from ..core.satellite import SatelliteSystem, SatID
from ..core.type_id import N1, N2, TypeID

logger = logging.getLogger(__name__)

# Marker meaning "ambiguity to be estimated", not a value
AMBIGUITY_MARKER = 1.0


class ObservationDifferencer:
    """
    Form rover - base differences of configured quantities

    For every satellite tracked by both receivers, each quantity configured
    for its system is differenced and stored under ``<type>Diff`` in the
    rover map. Satellites the base does not track are removed from the rover
    set and listed in ``rejected_sats``. Every remaining satellite gets the
    ``N1``/``N2`` ambiguity markers.

    A quantity missing on either side is skipped for that satellite only.
    """

    def __init__(self):
        self.diff_types: Dict[SatelliteSystem, List[TypeID]] = {}
        self.rejected_sats: Set[SatID] = set()

    def add_diff_type(self, system: SatelliteSystem, type_id: TypeID):
        types = self.diff_types.setdefault(SatelliteSystem.parse(system), [])
        type_id = TypeID(type_id)
        if type_id not in types:
            types.append(type_id)

    def clear_all(self):
        self.diff_types.clear()

    def process(self, rover: SatTypeValueMap, base: SatTypeValueMap) -> SatTypeValueMap:
        """
        Difference ``rover`` against ``base`` in place

        Parameters
        ----------
        rover : SatTypeValueMap
            Rover epoch, modified in place
        base : SatTypeValueMap
            Base epoch, read only

        Returns
        -------
        SatTypeValueMap
            The rover epoch
        """
        if not self.diff_types:
            raise InvalidRequest("No quantities configured for differencing")

        self.rejected_sats = set()
        for sat, rover_tv in rover.items():
            base_tv = base.get(sat)
            if base_tv is None:
                self.rejected_sats.add(sat)
                continue
            for type_id in self.diff_types.get(sat.system, []):
                rover_value = rover_tv.get(type_id)
                base_value = base_tv.get(type_id)
                if rover_value is None or base_value is None:
                    logger.trace(f"{sat}: {type_id} missing, not differenced")
                    continue
                rover_tv[type_id.diff()] = rover_value - base_value

        if self.rejected_sats:
            logger.debug(
                f"Not tracked by base: {', '.join(map(str, sorted(self.rejected_sats)))}")
        rover.remove_sat_ids(self.rejected_sats)

        for rover_tv in rover.values():
            rover_tv[N1] = AMBIGUITY_MARKER
            rover_tv[N2] = AMBIGUITY_MARKER
        return rover
