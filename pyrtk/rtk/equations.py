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
Symbolic observation equations and the per-epoch unknown set
============================================================

Equations are declared once per epoch in terms of ``Variable`` objects.
``EquationSystem.prepare`` expands them over the satellites of an epoch and
returns an ``EpochContext`` holding the unknown set with its column
indices, the design matrix ``H``, the weight matrix ``W`` and the prefit
vector ``b``. A context is only valid for the epoch it was built from.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.data_structures import SatTypeValueMap, TypeValueMap
from ..core.exceptions import InvalidEquationSystem, InvalidRequest
from ..core.satellite import SatelliteSystem, SatID
from ..core.type_id import WEIGHT, TypeID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Variable:
    """
    Unknown of the estimation problem

    Attributes
    ----------
    type : TypeID
        Quantity, also the key of its coefficient in observation maps
    system : SatelliteSystem, optional
        Constellation the unknown belongs to, None for shared unknowns
    satellite : SatID, optional
        Bound satellite of a satellite-indexed unknown
    is_ambiguity : bool
        Carrier-phase ambiguity
    sat_indexed : bool
        One instance per satellite, so the unknown set resizes between epochs
    no_apriori : bool
        No a priori information is available for the unknown
    """
    type: TypeID
    system: Optional[SatelliteSystem] = None
    satellite: Optional[SatID] = None
    is_ambiguity: bool = False
    sat_indexed: bool = False
    no_apriori: bool = True

    def at(self, sat: SatID) -> "Variable":
        """Instance of a satellite-indexed variable for one satellite"""
        if not self.sat_indexed:
            return self
        return replace(self, satellite=sat)

    def __str__(self):
        text = self.type.name
        if self.satellite is not None:
            text += f"[{self.satellite}]"
        elif self.system is not None:
            text += f"[{self.system.char}]"
        return text


@dataclass(frozen=True)
class Term:
    """
    Variable of an equation with its coefficient rule

    The coefficient is ``factor * obs[variable.type]`` when ``lookup`` is
    set and ``factor`` otherwise.
    """
    variable: Variable
    factor: float = 1.0
    lookup: bool = True

    def coefficient(self, tvmap: TypeValueMap) -> Optional[float]:
        if not self.lookup:
            return self.factor
        value = tvmap.get(self.variable.type)
        if value is None:
            return None
        return self.factor * value


@dataclass(frozen=True)
class Equation:
    """Prefit observable explained by weighted terms, for one satellite system"""
    prefit_type: TypeID
    system: SatelliteSystem
    terms: Tuple[Term, ...] = field(default_factory=tuple)
    weight: float = 1.0

    @property
    def variables(self) -> List[Variable]:
        return [term.variable for term in self.terms]


@dataclass(eq=False)
class EpochContext:
    """Unknown set and matrices of one epoch"""
    unknowns: Tuple[Variable, ...]
    H: np.ndarray
    W: np.ndarray
    b: np.ndarray
    rows: List[Tuple[SatID, Equation]]
    satellites: List[SatID]
    _index: Dict[Variable, int] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self._index = {v: i for i, v in enumerate(self.unknowns)}

    @property
    def num_unknowns(self) -> int:
        return len(self.unknowns)

    def index_of(self, variable: Variable) -> int:
        try:
            return self._index[variable]
        except KeyError:
            raise InvalidRequest(f"{variable} is not an unknown of this epoch") from None

    def has(self, variable: Variable) -> bool:
        return variable in self._index

    def variables_for(self, system: Optional[SatelliteSystem] = None,
                      is_ambiguity: Optional[bool] = None) -> List[Variable]:
        return [v for v in self.unknowns
                if (system is None or v.system == system)
                and (is_ambiguity is None or v.is_ambiguity == is_ambiguity)]


class EquationSystem:
    """
    Equation set that builds the per-epoch least-squares problem

    Unknowns that were present in the previous epoch keep their relative
    order, new unknowns are appended in order of first appearance.
    """

    def __init__(self):
        self.equations: List[Equation] = []
        self._previous_unknowns: Tuple[Variable, ...] = ()

    def add_equation(self, equation: Equation):
        self.equations.append(equation)

    def clear_equations(self):
        self.equations = []

    def reset(self):
        self.clear_equations()
        self._previous_unknowns = ()

    def _expand(self, stv: SatTypeValueMap):
        rows = []
        for sat in stv.sat_ids:
            tvmap = stv[sat]
            for equation in self.equations:
                if equation.system != sat.system:
                    continue
                prefit = tvmap.get(equation.prefit_type)
                if prefit is None:
                    continue
                coefficients = []
                for term in equation.terms:
                    value = term.coefficient(tvmap)
                    if value is None:
                        break
                    coefficients.append((term.variable.at(sat), value))
                else:
                    weight = equation.weight
                    sat_weight = tvmap.get(WEIGHT)
                    if sat_weight is not None:
                        weight *= sat_weight
                    rows.append((sat, equation, prefit, weight, coefficients))
                    continue
                logger.trace(f"{sat}: {equation.prefit_type} dropped, missing coefficient")
        return rows

    def _order_unknowns(self, referenced: Sequence[Variable]) -> Tuple[Variable, ...]:
        current = set(referenced)
        kept = [v for v in self._previous_unknowns if v in current]
        kept_set = set(kept)
        added = []
        for v in referenced:
            if v not in kept_set:
                kept_set.add(v)
                added.append(v)
        return tuple(kept + added)

    def prepare(self, stv: SatTypeValueMap) -> EpochContext:
        """
        Build the unknown set and the matrices for one epoch

        Raises
        ------
        InvalidEquationSystem
            When no equation row or no unknown results
        """
        if not self.equations:
            raise InvalidEquationSystem("No equations defined")

        rows = self._expand(stv)
        referenced = [var for row in rows for var, _ in row[4]]
        unknowns = self._order_unknowns(referenced)
        if not rows:
            raise InvalidEquationSystem("No equation could be formed for this epoch")
        if not unknowns:
            raise InvalidEquationSystem("Unknown set is empty")

        index = {v: i for i, v in enumerate(unknowns)}
        H = np.zeros((len(rows), len(unknowns)))
        b = np.zeros(len(rows))
        weights = np.zeros(len(rows))
        for i, (_, _, prefit, weight, coefficients) in enumerate(rows):
            for var, value in coefficients:
                H[i, index[var]] += value
            b[i] = prefit
            weights[i] = weight

        self._previous_unknowns = unknowns
        satellites = sorted({row[0] for row in rows})
        logger.debug(f"Equation system: {len(rows)} rows, {len(unknowns)} unknowns, "
                     f"{len(satellites)} satellites")
        return EpochContext(
            unknowns=unknowns,
            H=H,
            W=np.diag(weights),
            b=b,
            rows=[(row[0], row[1]) for row in rows],
            satellites=satellites,
        )
