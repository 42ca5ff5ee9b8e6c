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

"""Epoch time representation used throughout the engine"""

import math
from datetime import date, datetime, timedelta
from enum import Enum
from functools import total_ordering
from typing import Tuple

from .constants import MJD_BDS_EPOCH, MJD_GPS_EPOCH, MS_PER_DAY, SEC_PER_DAY, SEC_PER_WEEK
from .exceptions import InvalidRequest

MJD_ORIGIN = date(1858, 11, 17)


class TimeSystem(Enum):
    """Time system tag; ANY matches every other system"""
    ANY = "Any"
    GPS = "GPS"
    GLO = "GLO"
    GAL = "GAL"
    BDT = "BDT"
    QZS = "QZS"
    UTC = "UTC"

    def matches(self, other: "TimeSystem") -> bool:
        return self is TimeSystem.ANY or other is TimeSystem.ANY or self is other


@total_ordering
class CommonTime:
    """
    Time as Modified Julian Day, milliseconds of day and fractional seconds

    Parameters
    ----------
    day : int
        Modified Julian Day
    msec : int
        Milliseconds of day
    fsec : float
        Remaining fraction of a millisecond, in seconds
    time_system : TimeSystem
        Time system tag

    Notes
    -----
    Values are normalized so that ``0 <= msec < 86400000`` and
    ``0 <= fsec < 0.001``. Subtracting two times gives seconds; adding a
    float gives a new time. Comparisons between times tagged with two
    different concrete systems raise ``InvalidRequest``.
    """

    __slots__ = ('day', 'msec', 'fsec', 'time_system')

    def __init__(self, day: int = 0, msec: int = 0, fsec: float = 0.0,
                 time_system: TimeSystem = TimeSystem.ANY):
        extra_ms = math.floor(fsec * 1000.0)
        fsec -= extra_ms / 1000.0
        if fsec < 0.0:
            fsec = 0.0
        elif fsec >= 0.001:
            fsec -= 0.001
            extra_ms += 1
        extra_days, msec = divmod(int(msec) + int(extra_ms), MS_PER_DAY)
        self.day = int(day) + extra_days
        self.msec = msec
        self.fsec = fsec
        self.time_system = time_system

    # Constructors -----------------------------------------------------------

    @classmethod
    def from_mjd(cls, mjd: float, time_system: TimeSystem = TimeSystem.ANY) -> "CommonTime":
        day = math.floor(mjd)
        return cls(day, 0, (mjd - day) * SEC_PER_DAY, time_system)

    @classmethod
    def from_seconds(cls, day: int, sod: float,
                     time_system: TimeSystem = TimeSystem.ANY) -> "CommonTime":
        """Build from a day and seconds of day"""
        return cls(day, 0, sod, time_system)

    @classmethod
    def from_gps_week_seconds(cls, week: int, sow: float,
                              time_system: TimeSystem = TimeSystem.GPS) -> "CommonTime":
        origin = MJD_BDS_EPOCH if time_system is TimeSystem.BDT else MJD_GPS_EPOCH
        return cls(origin, 0, week * SEC_PER_WEEK + sow, time_system)

    @classmethod
    def from_ymd_hms(cls, year: int, month: int, day: int, hour: int = 0,
                     minute: int = 0, second: float = 0.0,
                     time_system: TimeSystem = TimeSystem.ANY) -> "CommonTime":
        mjd = (date(year, month, day) - MJD_ORIGIN).days
        return cls(mjd, 0, hour * 3600.0 + minute * 60.0 + second, time_system)

    # Conversions ------------------------------------------------------------

    @property
    def sod(self) -> float:
        """Seconds of day"""
        return self.msec / 1000.0 + self.fsec

    @property
    def mjd(self) -> float:
        return self.day + self.sod / SEC_PER_DAY

    def to_ydoy_sod(self) -> Tuple[int, int, float]:
        """Year, day of year and seconds of day"""
        d = MJD_ORIGIN + timedelta(days=self.day)
        return d.year, d.timetuple().tm_yday, self.sod

    def to_datetime(self) -> datetime:
        d = MJD_ORIGIN + timedelta(days=self.day)
        return datetime(d.year, d.month, d.day) + timedelta(seconds=self.sod)

    def to_gps_week_seconds(self) -> Tuple[int, float]:
        seconds = (self.day - MJD_GPS_EPOCH) * SEC_PER_DAY + self.sod
        week = int(seconds // SEC_PER_WEEK)
        return week, seconds - week * SEC_PER_WEEK

    def with_system(self, time_system: TimeSystem) -> "CommonTime":
        return CommonTime(self.day, self.msec, self.fsec, time_system)

    # Arithmetic -------------------------------------------------------------

    def _check_system(self, other: "CommonTime"):
        if not self.time_system.matches(other.time_system):
            raise InvalidRequest(
                f"Cannot compare times in {self.time_system.value} and {other.time_system.value}")

    def __sub__(self, other):
        if isinstance(other, CommonTime):
            self._check_system(other)
            return ((self.day - other.day) * SEC_PER_DAY
                    + (self.msec - other.msec) / 1000.0
                    + (self.fsec - other.fsec))
        if isinstance(other, (int, float)):
            return self + (-other)
        return NotImplemented

    def __add__(self, seconds):
        if not isinstance(seconds, (int, float)):
            return NotImplemented
        return CommonTime(self.day, self.msec, self.fsec + seconds, self.time_system)

    def __radd__(self, seconds):
        return self.__add__(seconds)

    def _key(self):
        return (self.day, self.msec, self.fsec)

    def __eq__(self, other):
        if not isinstance(other, CommonTime):
            return NotImplemented
        if not self.time_system.matches(other.time_system):
            return False
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, CommonTime):
            return NotImplemented
        self._check_system(other)
        return self._key() < other._key()

    def __hash__(self):
        # The time system is left out so that ANY-tagged times hash like tagged ones
        return hash(self._key())

    def __repr__(self):
        return (f"CommonTime({self.day}, {self.msec}, {self.fsec!r}, "
                f"TimeSystem.{self.time_system.name})")

    def __str__(self):
        year, doy, sod = self.to_ydoy_sod()
        return f"{year:04d} {doy:03d} {sod:.3f} {self.time_system.value}"
