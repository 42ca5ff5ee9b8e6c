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
Solution output
===============

Each processed epoch yields a ``SolutionRecord``. ``SolutionWriter`` prints
them as whitespace separated text, one epoch per line::

    # year doy sod numOfSat lat lon height x y z status ratio
    # end_of_header
    2021  1     3600.000000  9  35.7100000000  139.8100000000  45.123 ...

``solutions_to_dataframe`` collects records into a pandas DataFrame for
analysis and plotting.
"""

import logging
from dataclasses import dataclass
from typing import IO, Iterable, List, Optional

import numpy as np
import pandas as pd

from ..core.time import CommonTime
from ..gnss.geometry import ecef2llh

logger = logging.getLogger(__name__)

HEADER_FIELDS = ("year", "doy", "sod", "numOfSat", "lat", "lon", "height",
                 "x", "y", "z", "status", "ratio")


@dataclass
class SolutionRecord:
    """Rover solution of one epoch"""
    time: CommonTime
    position: np.ndarray          # float solution, ECEF (m)
    position_fixed: np.ndarray    # fixed solution, equal to position when not fixed
    baseline: Optional[np.ndarray] = None
    is_fixed: bool = False
    ratio: float = 0.0
    num_sats: int = 0
    status: str = "float"

    @property
    def best_position(self) -> np.ndarray:
        return self.position_fixed if self.is_fixed else self.position


class SolutionWriter:
    """
    Text writer for solution records

    Parameters
    ----------
    stream : IO[str]
        Open text stream; the writer does not close it
    """

    def __init__(self, stream: IO[str]):
        self.stream = stream
        self._header_written = False
        self.count = 0

    def write_header(self):
        self.stream.write("# " + " ".join(HEADER_FIELDS) + "\n")
        self.stream.write("# end_of_header\n")
        self._header_written = True

    def write(self, record: SolutionRecord):
        if not self._header_written:
            self.write_header()
        year, doy, sod = record.time.to_ydoy_sod()
        xyz = record.best_position
        lat, lon, height = ecef2llh(xyz)
        ratio = record.ratio if np.isfinite(record.ratio) else 9999.9
        self.stream.write(
            f"{year:4d} {doy:3d} {sod:13.6f} {record.num_sats:3d} "
            f"{np.degrees(lat):15.10f} {np.degrees(lon):15.10f} {height:10.3f} "
            f"{xyz[0]:14.3f} {xyz[1]:14.3f} {xyz[2]:14.3f} "
            f"{record.status:>12s} {ratio:8.2f}\n")
        self.count += 1

    def write_all(self, records: Iterable[SolutionRecord]):
        for record in records:
            self.write(record)


def solutions_to_dataframe(records: Iterable[SolutionRecord]) -> pd.DataFrame:
    """
    Tabulate solution records

    Columns: ``time`` (datetime), ``x/y/z`` of the best solution,
    ``x_float/y_float/z_float``, ``is_fixed``, ``ratio``, ``num_sats`` and
    ``status``.
    """
    rows: List[dict] = []
    for record in records:
        best = record.best_position
        rows.append({
            "time": record.time.to_datetime(),
            "x": best[0], "y": best[1], "z": best[2],
            "x_float": record.position[0],
            "y_float": record.position[1],
            "z_float": record.position[2],
            "is_fixed": record.is_fixed,
            "ratio": record.ratio,
            "num_sats": record.num_sats,
            "status": record.status,
        })
    columns = ["time", "x", "y", "z", "x_float", "y_float", "z_float",
               "is_fixed", "ratio", "num_sats", "status"]
    df = pd.DataFrame(rows, columns=columns)
    logger.debug(f"Tabulated {len(df)} solutions")
    return df
