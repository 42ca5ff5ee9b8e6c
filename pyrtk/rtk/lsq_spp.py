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
Code-only single point positioning
==================================

Locates a receiver that has no a priori position. Per satellite ``s`` of
system ``S`` with bands ``a`` and ``b``::

    prefitCaS = -e_s . dx + dcdtS + I_s
    prefitCbS = -e_s . dx + dcdtS + (f_a / f_b)^2 * I_s

``I_s`` is the slant ionospheric delay on band ``a``, estimated per
satellite, so the solution is ionosphere free. The position is iterated
from the previous fix, or from the earth centre, until the correction is
below ``spp_convergence``. The elevation mask only applies once the
iterate is above the earth surface.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from ..core.config import RTKConfig
from ..core.constants import FE_WGS84, RE_WGS84
from ..core.data_structures import SatTypeValueMap
from ..core.exceptions import InvalidSolver
from ..core.satellite import SatelliteSystem
from ..core.type_id import DX, DY, DZ, IONO, clock_type, obs_type
from ..gnss.derivative import ComputeDerivative
from ..gnss.frequency import get_frequency
from ..gnss.prefit import ComputePrefit
from .equations import Equation, EquationSystem, Term, Variable
from .lsq_rtk import WeightedLeastSquares

logger = logging.getLogger(__name__)


@dataclass
class SPPSolution:
    """Receiver position located from code observations"""
    position: np.ndarray
    cov: np.ndarray
    clocks: Dict[SatelliteSystem, float]
    num_sats: int
    iterations: int


class LsqSPP:
    """
    Iterated least-squares single point positioning

    Parameters
    ----------
    config : RTKConfig, optional
        Systems, bands, code noise, elevation mask and iteration settings
    solver : WeightedLeastSquares, optional
        Solver of each iteration
    """

    def __init__(self, config: Optional[RTKConfig] = None,
                 solver: Optional[WeightedLeastSquares] = None):
        self.config = config or RTKConfig()
        self.solver = solver or WeightedLeastSquares()
        self.equation_system = EquationSystem()
        self.prefit = ComputePrefit()
        self.coordinates = (Variable(DX), Variable(DY), Variable(DZ))

        for system in self.config.systems:
            for band in self.config.bands_of(system):
                self.prefit.add_observable(system, obs_type('C', band, system))
        self.define_equations()

    def define_equations(self):
        self.equation_system.clear_equations()
        geometry = tuple(Term(v) for v in self.coordinates)

        for system in self.config.systems:
            first, second = self.config.bands_of(system)
            clock = Term(Variable(clock_type(system), system=system), 1.0, lookup=False)
            f_first, f_second = get_frequency(system, first), get_frequency(system, second)
            iono = Variable(IONO, system=system, sat_indexed=True)
            for band in (first, second):
                terms = geometry + (clock,)
                if f_first > 0.0 and f_second > 0.0:
                    factor = 1.0 if band == first else (f_first / f_second) ** 2
                    terms += (Term(iono, factor, lookup=False),)
                self.equation_system.add_equation(Equation(
                    prefit_type=obs_type('C', band, system).prefit(),
                    system=system,
                    terms=terms,
                    weight=self.config.code_weight,
                ))

    def process(self, stv: SatTypeValueMap, position=None) -> SPPSolution:
        """
        Locate the receiver observing ``stv``

        ``stv`` is left untouched; each iteration works on a copy so the
        elevation mask is applied from the current iterate.

        Raises
        ------
        InvalidEquationSystem
            If no code equation can be formed
        InvalidSolver
            If the geometry is singular or the iteration does not converge
        """
        position = np.zeros(3) if position is None else np.array(position, dtype=float)
        correction = np.inf
        for iteration in range(1, self.config.spp_max_iterations + 1):
            work = stv.copy()
            above_ground = np.linalg.norm(position) > RE_WGS84 * (1.0 - FE_WGS84)
            mask = self.config.min_elevation if above_ground else -90.0
            ComputeDerivative(position, mask).process(work)
            self.prefit.process(work)

            context = self.equation_system.prepare(work)
            x, cov = self.solver.solve(context.H, context.W, context.b)
            index = [context.index_of(v) for v in self.coordinates]
            dx = x[index]
            position = position + dx
            correction = float(np.linalg.norm(dx))
            logger.trace(f"SPP iteration {iteration}: correction {correction:.3f} m")

            if correction < self.config.spp_convergence:
                clocks = {v.system: float(x[context.index_of(v)])
                          for v in context.variables_for(is_ambiguity=False)
                          if v.system is not None and v.type == clock_type(v.system)}
                logger.debug(f"SPP converged in {iteration} iterations, "
                             f"{len(context.satellites)} satellites")
                return SPPSolution(
                    position=position,
                    cov=cov[np.ix_(index, index)],
                    clocks=clocks,
                    num_sats=len(context.satellites),
                    iterations=iteration,
                )

        raise InvalidSolver(f"SPP did not converge in {self.config.spp_max_iterations} "
                            f"iterations, last correction {correction:.3f} m")
