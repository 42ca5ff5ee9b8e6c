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
Epoch observation providers
===========================

The engine reads receiver epochs through ``read_epoch()``. Providers raise
``EndOfData`` when exhausted and ``MalformedRecord`` for corrupt input, so
the run loop can stop normally on the first and abort on the second.

``RecordEpochProvider`` replays plain records such as decoded JSON::

    {
        "time": {"week": 2138, "sow": 345600.0},
        "position": [-2267749.0, 5009154.0, 3221290.0],
        "receiver": "ROVER",
        "observations": {"G05": {"C1G": 2.1e7, "L1G": 2.1e7, ...}}
    }
"""

import logging
from typing import Iterable, List, Optional, Protocol, Union

import numpy as np

from ..core.data_structures import ReceiverEpoch, SatTypeValueMap
from ..core.exceptions import EndOfData, InvalidRequest, MalformedRecord
from ..core.time import CommonTime, TimeSystem

logger = logging.getLogger(__name__)


class EpochProvider(Protocol):
    """Anything that yields receiver epochs"""

    def read_epoch(self) -> ReceiverEpoch:
        ...


def parse_time(value) -> CommonTime:
    """Epoch time from a CommonTime, ``{"week", "sow"}`` or ``{"mjd"}`` mapping"""
    if isinstance(value, CommonTime):
        return value
    if isinstance(value, dict):
        system = TimeSystem(value.get("system", "GPS"))
        if "week" in value:
            return CommonTime.from_gps_week_seconds(int(value["week"]), float(value["sow"]), system)
        if "mjd" in value:
            return CommonTime.from_mjd(float(value["mjd"]), system)
    raise ValueError(f"Unsupported time value: {value!r}")


def parse_record(record) -> ReceiverEpoch:
    """
    Convert one record into a ReceiverEpoch

    Raises
    ------
    MalformedRecord
        If a field is missing or cannot be converted
    """
    if isinstance(record, ReceiverEpoch):
        return record
    try:
        time = parse_time(record["time"])
        observations = SatTypeValueMap.from_dict(record["observations"])
        position = record.get("position")
        if position is not None:
            position = np.asarray(position, dtype=float)
            if position.shape != (3,):
                raise ValueError(f"position must have 3 components, got {position.shape}")
        return ReceiverEpoch(time, observations, position, record.get("receiver", ""))
    except (KeyError, TypeError, ValueError, InvalidRequest) as e:
        raise MalformedRecord(f"Cannot decode epoch record: {e}") from e


class RecordEpochProvider:
    """
    Provider replaying a sequence of records or ReceiverEpoch objects

    Records are decoded lazily, so a corrupt record surfaces as
    ``MalformedRecord`` when it is reached.
    """

    def __init__(self, records: Iterable[Union[dict, ReceiverEpoch]]):
        self._records: List = list(records)
        self._pos = 0
        self._peeked: Optional[ReceiverEpoch] = None

    def __len__(self):
        return len(self._records)

    def read_epoch(self) -> ReceiverEpoch:
        if self._peeked is not None:
            epoch, self._peeked = self._peeked, None
            return epoch
        if self._pos >= len(self._records):
            raise EndOfData("No more epochs")
        record = self._records[self._pos]
        self._pos += 1
        return parse_record(record)

    def peek(self) -> ReceiverEpoch:
        if self._peeked is None:
            self._peeked = self.read_epoch()
        return self._peeked

    def read_epoch_at(self, time: CommonTime) -> Optional[ReceiverEpoch]:
        """
        Epoch matching ``time``, skipping older ones

        Returns None, without consuming it, when the next epoch is later.
        A stream tagged ``Any`` matches rover epochs of every time system.
        """
        while True:
            epoch = self.peek()
            try:
                offset = epoch.time - time
            except InvalidRequest as e:
                raise MalformedRecord(
                    f"Epoch {epoch.time} cannot be aligned with {time}: {e}") from e
            if abs(offset) < 1e-6:
                return self.read_epoch()
            if offset > 0.0:
                return None
            logger.debug(f"Skipping epoch {epoch.time}, older than {time}")
            self.read_epoch()
