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
Single-epoch RTK least squares with ambiguity fixing
====================================================

The observation model per satellite ``s`` of system ``S`` and band ``i``
(single differences between rover and base)::

    prefitCiSDiff = -e_s . dx + dcdtS
    prefitLiSDiff = -e_s . dx + dcdtS + lambda_i * Ni_s

The coordinate correction and the receiver clocks are shared by all
equations and solved jointly. Ambiguities are then fixed per system on
single differences against the highest satellite, and the float solution is
conditioned on the integers:

    x_fixed = x - Q_xa * Q_a^-1 * (a_float - a_int)
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve, solve

from ..core.config import RTKConfig
from ..core.data_structures import SatTypeValueMap
from ..core.exceptions import AmbiguityResolutionError, InvalidRequest, InvalidSolver
from ..core.satellite import SatelliteSystem, SatID
from ..core.type_id import DX, DY, DZ, ELEVATION, N1, N2, TypeID, clock_type, obs_type
from ..gnss.frequency import get_wavelength
from .equations import EpochContext, Equation, EquationSystem, Term, Variable
from .lambda_resolver import LambdaResolver

logger = logging.getLogger(__name__)

# Fix status values
FIXED = "fixed"
FLOAT = "float"
INSUFFICIENT = "insufficient"
FAILED = "failed"


class WeightedLeastSquares:
    """Weighted least squares through the normal equations"""

    def solve(self, H: np.ndarray, W: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Solve ``min (b - Hx)' W (b - Hx)``

        Returns
        -------
        x : np.ndarray
            Solution vector
        cov : np.ndarray
            ``(H' W H)^-1``

        Raises
        ------
        InvalidSolver
            If the normal matrix is singular
        """
        n = H.shape[1]
        HtW = H.T @ W
        normal = HtW @ H
        if H.shape[0] < n or np.linalg.matrix_rank(normal) < n:
            raise InvalidSolver(
                f"Normal matrix is singular ({H.shape[0]} rows, {n} unknowns)")
        try:
            factor = cho_factor(normal)
        except LinAlgError as e:
            raise InvalidSolver(f"Normal matrix is not positive definite: {e}") from e
        cov = cho_solve(factor, np.eye(n))
        x = cov @ (HtW @ b)
        return x, cov


@dataclass
class AmbiguityFixResult:
    """Outcome of the ambiguity fix of one satellite system"""
    system: SatelliteSystem
    status: str
    main_sat: Optional[SatID] = None
    float_amb: Optional[np.ndarray] = None
    int_amb: Optional[np.ndarray] = None
    ratio: float = 0.0
    success_rate: float = 0.0
    correction: Optional[np.ndarray] = None
    message: str = ""

    @property
    def fixed(self) -> bool:
        return self.status == FIXED


@dataclass
class RTKSolution:
    """Float and fixed solutions of one epoch"""
    context: EpochContext
    x: np.ndarray
    cov: np.ndarray
    x_fixed: np.ndarray
    delta: np.ndarray
    delta_fixed: np.ndarray
    fix_results: Dict[SatelliteSystem, AmbiguityFixResult] = field(default_factory=dict)

    @property
    def is_fixed(self) -> bool:
        return any(r.fixed for r in self.fix_results.values())

    @property
    def num_sats(self) -> int:
        return len(self.context.satellites)


class LsqRTK:
    """
    Epoch-wise RTK estimator

    Parameters
    ----------
    config : RTKConfig, optional
        Systems, bands, noise and ratio threshold
    solver : WeightedLeastSquares, optional
        Float solver
    """

    def __init__(self, config: Optional[RTKConfig] = None,
                 solver: Optional[WeightedLeastSquares] = None):
        self.config = config or RTKConfig()
        self.solver = solver or WeightedLeastSquares()
        self.equation_system = EquationSystem()
        self.resolver = LambdaResolver(self.config.ncands, self.config.max_search_loops)
        self.solution: Optional[RTKSolution] = None
        self.dx = Variable(DX)
        self.dy = Variable(DY)
        self.dz = Variable(DZ)

    def define_equations(self):
        """Declare code and phase equations of every configured system"""
        self.equation_system.clear_equations()
        geometry = (Term(self.dx), Term(self.dy), Term(self.dz))

        for system in self.config.systems:
            clock = Variable(clock_type(system), system=system)
            common = geometry + (Term(clock, 1.0, lookup=False),)
            for band, amb_type in zip(self.config.bands_of(system), (N1, N2)):
                self.equation_system.add_equation(Equation(
                    prefit_type=obs_type('C', band, system).prefit().diff(),
                    system=system,
                    terms=common,
                    weight=self.config.code_weight,
                ))

                wavelength = get_wavelength(system, band)
                if wavelength == 0.0:
                    logger.warning(f"No wavelength for {system.name} band {band}, "
                                   f"phase equation skipped")
                    continue
                ambiguity = Variable(amb_type, system=system, is_ambiguity=True, sat_indexed=True)
                self.equation_system.add_equation(Equation(
                    prefit_type=obs_type('L', band, system).prefit().diff(),
                    system=system,
                    terms=common + (Term(ambiguity, wavelength),),
                    weight=self.config.phase_weight,
                ))

    def process(self, stv: SatTypeValueMap) -> RTKSolution:
        """
        Estimate float and fixed solutions of one epoch

        Raises
        ------
        InvalidEquationSystem
            If no equation or unknown can be formed
        InvalidSolver
            If the normal matrix is singular
        """
        self.solution = None
        self.define_equations()
        context = self.equation_system.prepare(stv)
        x, cov = self.solver.solve(context.H, context.W, context.b)
        delta = self._coordinates(context, x)

        # Corrections are all computed from the float solution, then summed
        fix_results = {}
        for system in self.config.systems:
            fix_results[system] = self.fix_ambiguity(context, x, cov, system, stv)

        x_fixed = x.copy()
        for result in fix_results.values():
            if result.correction is not None:
                x_fixed -= result.correction

        self.solution = RTKSolution(
            context=context,
            x=x,
            cov=cov,
            x_fixed=x_fixed,
            delta=delta,
            delta_fixed=self._coordinates(context, x_fixed),
            fix_results=fix_results,
        )
        return self.solution

    def _coordinates(self, context: EpochContext, vector: np.ndarray) -> np.ndarray:
        return np.array([vector[context.index_of(v)] for v in (self.dx, self.dy, self.dz)])

    def get_solution(self, type_id: TypeID, vector: Optional[np.ndarray] = None,
                     satellite: Optional[SatID] = None) -> float:
        """
        Value of the first unknown of ``type_id`` in ``vector``

        ``vector`` defaults to the float solution of the last epoch.

        Raises
        ------
        InvalidRequest
            If no epoch was processed or the type is not an unknown of it
        """
        if self.solution is None:
            raise InvalidRequest("No solution available")
        if vector is None:
            vector = self.solution.x
        type_id = TypeID(type_id)
        for i, variable in enumerate(self.solution.context.unknowns):
            if variable.type == type_id and (satellite is None or variable.satellite == satellite):
                return float(vector[i])
        raise InvalidRequest(f"Type {type_id} not found in the current unknown set")

    @property
    def delta(self) -> np.ndarray:
        if self.solution is None:
            raise InvalidRequest("No solution available")
        return self.solution.delta

    @property
    def delta_fixed(self) -> np.ndarray:
        if self.solution is None:
            raise InvalidRequest("No solution available")
        return self.solution.delta_fixed

    @property
    def is_fixed(self) -> bool:
        return self.solution is not None and self.solution.is_fixed

    @staticmethod
    def select_main_satellite(sats: List[SatID], stv: SatTypeValueMap) -> SatID:
        """Highest satellite; the first one found wins ties"""
        main = sats[0]
        best = -np.inf
        for sat in sats:
            tvmap = stv.get(sat)
            elevation = tvmap.get(ELEVATION) if tvmap is not None else None
            if elevation is not None and elevation > best:
                main, best = sat, elevation
        return main

    def fix_ambiguity(self, context: EpochContext, x: np.ndarray, cov: np.ndarray,
                      system: SatelliteSystem, stv: SatTypeValueMap) -> AmbiguityFixResult:
        """
        Fix single-differenced ambiguities of one system

        Returns the correction to subtract from ``x`` in ``result.correction``
        when the ratio test passes; other outcomes carry no correction.
        """
        ambiguities = {(v.type, v.satellite): v
                       for v in context.variables_for(system, is_ambiguity=True)}
        sats = sorted({sat for _, sat in ambiguities})
        if len(sats) < 2:
            return AmbiguityFixResult(system, INSUFFICIENT,
                                      message=f"{len(sats)} satellites with ambiguities")

        amb_types = sorted({amb_type for amb_type, _ in ambiguities})
        # Reference must carry every band so no difference is lost
        complete = [sat for sat in sats
                    if all((amb_type, sat) in ambiguities for amb_type in amb_types)]
        main = self.select_main_satellite(complete or sats, stv)
        rows = []
        for amb_type in amb_types:
            reference = main
            if (amb_type, reference) not in ambiguities:
                reference = self.select_main_satellite(
                    [sat for sat in sats if (amb_type, sat) in ambiguities], stv)
            main_var = ambiguities[(amb_type, reference)]
            for sat in sats:
                other = ambiguities.get((amb_type, sat))
                if sat == reference or other is None:
                    continue
                row = np.zeros(context.num_unknowns)
                row[context.index_of(main_var)] = 1.0
                row[context.index_of(other)] = -1.0
                rows.append(row)
        if not rows:
            return AmbiguityFixResult(system, INSUFFICIENT, main_sat=main,
                                      message="no single difference could be formed")

        h = np.array(rows)
        float_amb = h @ x
        float_amb_cov = h @ cov @ h.T

        try:
            int_amb = self.resolver.resolve(float_amb, float_amb_cov)
        except AmbiguityResolutionError as e:
            logger.warning(f"{system.name}: ambiguity resolution failed: {e}")
            return AmbiguityFixResult(system, FAILED, main_sat=main,
                                      float_amb=float_amb, message=str(e))

        ratio = self.resolver.squared_ratio
        result = AmbiguityFixResult(system, FLOAT, main_sat=main, float_amb=float_amb,
                                    int_amb=int_amb, ratio=ratio,
                                    success_rate=self.resolver.success_rate)
        if not self.resolver.is_fixed(self.config.ratio_threshold):
            logger.debug(f"{system.name}: ratio {ratio:.2f} below "
                         f"{self.config.ratio_threshold}, kept float")
            return result

        try:
            gain = solve(float_amb_cov, float_amb - int_amb, assume_a='pos')
        except LinAlgError as e:
            logger.warning(f"{system.name}: singular ambiguity covariance: {e}")
            result.status = FAILED
            result.message = str(e)
            return result

        result.correction = cov @ h.T @ gain
        result.status = FIXED
        logger.debug(f"{system.name}: fixed {len(int_amb)} ambiguities, main {main}, "
                     f"ratio {ratio:.1f}")
        return result
