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
Epoch-by-epoch RTK processing chain
===================================

Both receivers go through the same preparation steps::

    KeepSystems -> ConvertObs -> RequiredObs -> ComputeDerivative
        -> ComputePrefit -> Melbourne-Wubbena combination -> MWCycleSlipDetector

then the rover is differenced against the base, arcs and weights are
marked, and ``LsqRTK`` estimates the float and fixed solutions. A rover
epoch without a position is first located by ``LsqSPP``, seeded with the
previous solution; the base must always carry its known position.

Example
-------
>>> processor = RTKProcessor(RTKConfig(systems=["GPS"]))
>>> records = processor.run(rover_provider, base_provider)
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..core.config import RTKConfig
from ..core.data_structures import ReceiverEpoch, SatTypeValueMap
from ..core.exceptions import (
    EndOfData, InvalidEquationSystem, InvalidRequest, InvalidSolver, MalformedRecord,
)
from ..core.time import CommonTime
from ..core.type_id import mw_type, obs_type
from ..gnss.combinations import ComputeCombination, mw_combination
from ..gnss.convert_obs import ConvertObs
from ..gnss.derivative import ComputeDerivative
from ..gnss.filters import KeepSystems, MarkArc, RequiredObs
from ..gnss.prefit import ComputePrefit
from ..gnss.weights import ComputeElevWeights
from ..io.solution_writer import SolutionRecord, SolutionWriter
from .cycle_slip import MWCycleSlipDetector
from .differencer import ObservationDifferencer
from .lsq_rtk import LsqRTK, RTKSolution
from .lsq_spp import LsqSPP

logger = logging.getLogger(__name__)

SKIPPED = "skipped"


@dataclass
class EpochReport:
    """Outcome of one rover epoch"""
    time: CommonTime
    status: str
    num_sats: int = 0
    message: str = ""


class RTKProcessor:
    """
    Run the full RTK chain over synchronized rover and base epochs

    Parameters
    ----------
    config : RTKConfig, optional
        Processing settings
    writer : SolutionWriter, optional
        Receives every solution as it is produced
    """

    def __init__(self, config: Optional[RTKConfig] = None,
                 writer: Optional[SolutionWriter] = None):
        self.config = config or RTKConfig()
        self.writer = writer
        self.reports: List[EpochReport] = []

        self.last_position: Optional[np.ndarray] = None

        self.keep_systems = KeepSystems(self.config.systems)
        self.convert_obs = ConvertObs(self.config.priority_types, self.config.phase_in_cycles)
        self.required_obs = RequiredObs()
        self.prefit = ComputePrefit()
        self.combinations = ComputeCombination()
        self.rover_detector = MWCycleSlipDetector(self.config.mw_delta_t_max,
                                                  self.config.mw_min_cycles)
        self.base_detector = MWCycleSlipDetector(self.config.mw_delta_t_max,
                                                 self.config.mw_min_cycles)
        self.differencer = ObservationDifferencer()
        self.mark_arc = MarkArc()
        self.weights = ComputeElevWeights(self.config.elevation_weight_exponent)
        self.lsq = LsqRTK(self.config)
        self.spp = LsqSPP(self.config)

        for system in self.config.systems:
            first, second = self.config.bands_of(system)
            for band in (first, second):
                for kind in ('C', 'L'):
                    observable = obs_type(kind, band, system)
                    self.required_obs.add_required_type(system, observable)
                    prefit_type = self.prefit.add_observable(system, observable)
                    self.differencer.add_diff_type(system, prefit_type)
            self.combinations.add_linear(system, mw_combination(system, second, first))
            mw = mw_type(second, first, system)
            self.rover_detector.add_type(system, mw)
            self.base_detector.add_type(system, mw)

    def prepare_receiver(self, epoch: ReceiverEpoch, detector: MWCycleSlipDetector,
                         locate: bool = False) -> SatTypeValueMap:
        """
        Single-receiver steps, applied in place to ``epoch.observations``

        With ``locate`` set, an epoch without a position is first located by
        single point positioning and ``epoch.position`` is filled in.

        Raises
        ------
        InvalidRequest
            If the epoch carries no position and ``locate`` is not set
        InvalidEquationSystem, InvalidSolver
            If single point positioning fails
        """
        stv = epoch.observations
        self.keep_systems.process(stv)
        self.convert_obs.process(stv)
        self.required_obs.process(stv)
        if epoch.position is None:
            if not locate:
                raise InvalidRequest(f"{epoch.receiver or 'receiver'} epoch {epoch.time} "
                                     f"has no a priori position")
            solution = self.spp.process(stv, self.last_position)
            epoch.position = solution.position
            logger.debug(f"{epoch.time}: {epoch.receiver or 'receiver'} located by SPP "
                         f"with {solution.num_sats} satellites")
        ComputeDerivative(epoch.position, self.config.min_elevation).process(stv)
        self.prefit.process(stv)
        self.combinations.process(stv)
        detector.process(epoch.time, stv)
        return stv

    @staticmethod
    def merge_slip_flags(rover: SatTypeValueMap, base: SatTypeValueMap):
        """A slip on either receiver breaks the single-difference arc"""
        for sat, rover_tv in rover.items():
            base_tv = base.get(sat)
            if base_tv is None:
                continue
            for type_id, value in base_tv.items():
                if type_id.name.startswith("CSFlag"):
                    rover_tv[type_id] = max(value, rover_tv.get(type_id) or 0.0)

    def _skip(self, time: CommonTime, num_sats: int, message: str):
        logger.error(f"{time}: epoch skipped, {message}")
        self.reports.append(EpochReport(time, SKIPPED, num_sats, message))

    def process_epoch(self, rover: ReceiverEpoch,
                      base: ReceiverEpoch) -> Optional[SolutionRecord]:
        """
        Process one synchronized epoch pair

        Returns
        -------
        SolutionRecord or None
            None when the epoch is skipped; see ``reports`` for the reason

        Raises
        ------
        InvalidRequest
            If the base epoch has no position, only when ``config.strict`` is set
        InvalidEquationSystem, InvalidSolver
            Only when ``config.strict`` is set
        """
        if base.position is None:
            message = f"base epoch {base.time} has no position"
            if self.config.strict:
                raise InvalidRequest(message)
            self._skip(rover.time, 0, message)
            return None

        try:
            rover_stv = self.prepare_receiver(rover, self.rover_detector, locate=True)
        except (InvalidEquationSystem, InvalidSolver) as e:
            if self.config.strict:
                raise
            self._skip(rover.time, rover.num_sats(), f"rover not located, {e}")
            return None
        base_stv = self.prepare_receiver(base, self.base_detector)

        self.differencer.process(rover_stv, base_stv)
        self.merge_slip_flags(rover_stv, base_stv)
        self.mark_arc.process(rover.time, rover_stv)
        self.weights.process(rover_stv)

        num_sats = rover_stv.num_sats()
        if num_sats < self.config.min_sats:
            self._skip(rover.time, num_sats,
                       f"{num_sats} common satellites, {self.config.min_sats} required")
            return None

        try:
            solution = self.lsq.process(rover_stv)
        except (InvalidEquationSystem, InvalidSolver) as e:
            if self.config.strict:
                raise
            self._skip(rover.time, num_sats, str(e))
            return None

        record = self._to_record(rover, base, solution)
        self.last_position = record.position_fixed
        self.reports.append(EpochReport(rover.time, record.status, record.num_sats))
        logger.info(f"{rover.time}: {record.status}, {record.num_sats} sats, "
                    f"ratio {record.ratio:.2f}")
        return record

    @staticmethod
    def _to_record(rover: ReceiverEpoch, base: ReceiverEpoch,
                   solution: RTKSolution) -> SolutionRecord:
        position = rover.position + solution.delta
        position_fixed = rover.position + solution.delta_fixed
        ratios = [r.ratio for r in solution.fix_results.values() if r.int_amb is not None]
        return SolutionRecord(
            time=rover.time,
            position=position,
            position_fixed=position_fixed,
            baseline=position_fixed - np.asarray(base.position, dtype=float),
            is_fixed=solution.is_fixed,
            ratio=min(ratios) if ratios else 0.0,
            num_sats=solution.num_sats,
            status="fixed" if solution.is_fixed else "float",
        )

    def run(self, rover_provider, base_provider) -> List[SolutionRecord]:
        """
        Process epochs until either provider is exhausted

        Rover epochs without a base epoch at the same time are skipped.

        Raises
        ------
        MalformedRecord
            On corrupt input from either provider, after logging it
        """
        records = []
        while True:
            try:
                rover = rover_provider.read_epoch()
                base = base_provider.read_epoch_at(rover.time)
            except EndOfData:
                break
            except MalformedRecord as e:
                logger.error(f"Aborting: {e}")
                raise
            if base is None:
                logger.warning(f"{rover.time}: no base epoch, rover epoch skipped")
                continue

            record = self.process_epoch(rover, base)
            if record is None:
                continue
            records.append(record)
            if self.writer is not None:
                self.writer.write(record)

        num_fixed = sum(1 for r in records if r.is_fixed)
        num_skipped = sum(1 for r in self.reports if r.status == SKIPPED)
        logger.info(f"Processed {len(records)} epochs, {num_fixed} fixed, "
                    f"{num_skipped} skipped")
        return records
