"""
MIP solver capability used by the coloring formulation.

The formulation only talks to the MipBackend protocol, so any solver
library offering binary/continuous variables, linear constraints and a
linear minimization objective can be plugged in. OrToolsBackend is the
default implementation on top of OR-Tools' linear solver wrapper.
"""

import logging
import math
from collections.abc import Sequence
from enum import Enum
from typing import Any, Optional, Protocol

from ortools.linear_solver import pywraplp

from .errors import SolverError

_logger = logging.getLogger(__name__)

# (variable, coefficient) pairs of a linear expression
Terms = Sequence[tuple[Any, float]]


class BackendStatus(Enum):
    """Status of the backend after optimization."""

    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    NOT_SOLVED = "not_solved"
    ERROR = "error"

    @property
    def has_solution(self) -> bool:
        return self in (BackendStatus.OPTIMAL, BackendStatus.FEASIBLE)


class Sense(Enum):
    """Relation between a linear expression and its right-hand side."""

    LE = "<="
    GE = ">="
    EQ = "=="


class MipBackend(Protocol):
    """Protocol for MIP solvers driven by the coloring formulation."""

    def add_binary_variable(self, name: str, fixed: Optional[int] = None, upper: int = 1) -> Any: ...
    def add_continuous_variable(self, lower: float, upper: float, name: str) -> Any: ...
    def add_constraint(self, terms: Terms, sense: Sense, rhs: float, name: str) -> None: ...
    def set_objective(self, terms: Terms) -> None: ...
    def optimize(self) -> BackendStatus: ...
    def get_status(self) -> BackendStatus: ...
    def get_value(self, var: Any) -> float: ...
    def objective_value(self) -> float: ...
    def export_lp(self) -> str: ...


_STATUS_MAP = {
    pywraplp.Solver.OPTIMAL: BackendStatus.OPTIMAL,
    pywraplp.Solver.FEASIBLE: BackendStatus.FEASIBLE,
    pywraplp.Solver.INFEASIBLE: BackendStatus.INFEASIBLE,
    pywraplp.Solver.UNBOUNDED: BackendStatus.UNBOUNDED,
    pywraplp.Solver.NOT_SOLVED: BackendStatus.NOT_SOLVED,
    pywraplp.Solver.ABNORMAL: BackendStatus.ERROR,
}


def time_limit_ms(seconds: float) -> int:
    """Convert a positive limit in seconds to whole milliseconds, never below 1 (0 means no limit to OR-Tools)."""
    return max(1, math.ceil(seconds * 1000))


class OrToolsBackend:
    """
    MipBackend on top of OR-Tools' pywraplp.

    Uses the SCIP engine by default. Native solver output is suppressed.
    """

    def __init__(
        self,
        solver_name: str = "SCIP",
        threads: Optional[int] = None,
        time_limit_seconds: Optional[float] = None,
    ):
        """
        Create a fresh solver session.

        Args:
            solver_name: OR-Tools engine ("SCIP", "CBC", ...)
            threads: Worker thread hint forwarded to the engine (ignored if not positive)
            time_limit_seconds: Optional wall-clock limit for optimize()

        Raises:
            SolverError: If OR-Tools cannot create the requested engine
        """
        solver = pywraplp.Solver.CreateSolver(solver_name)
        if solver is None:
            raise SolverError(f"OR-Tools backend {solver_name!r} is not available")
        solver.SuppressOutput()

        if threads is not None and threads > 0:
            if not solver.SetNumThreads(threads):
                _logger.warning("Backend %s rejected thread count %d", solver_name, threads)
        if time_limit_seconds is not None:
            solver.SetTimeLimit(time_limit_ms(time_limit_seconds))

        self.solver_name = solver_name
        self._solver = solver
        self._status = BackendStatus.NOT_SOLVED

    @property
    def num_variables(self) -> int:
        return self._solver.NumVariables()

    @property
    def num_constraints(self) -> int:
        return self._solver.NumConstraints()

    def add_binary_variable(self, name: str, fixed: Optional[int] = None, upper: int = 1) -> pywraplp.Variable:
        if fixed is not None:
            return self._solver.IntVar(fixed, fixed, name)
        return self._solver.IntVar(0, upper, name)

    def add_continuous_variable(self, lower: float, upper: float, name: str) -> pywraplp.Variable:
        return self._solver.NumVar(lower, upper, name)

    def add_constraint(self, terms: Terms, sense: Sense, rhs: float, name: str) -> None:
        inf = self._solver.infinity()
        if sense is Sense.LE:
            ct = self._solver.Constraint(-inf, rhs, name)
        elif sense is Sense.GE:
            ct = self._solver.Constraint(rhs, inf, name)
        else:
            ct = self._solver.Constraint(rhs, rhs, name)
        for var, coeff in terms:
            # SetCoefficient overwrites, so repeated variables must be summed
            ct.SetCoefficient(var, ct.GetCoefficient(var) + coeff)

    def set_objective(self, terms: Terms) -> None:
        objective = self._solver.Objective()
        objective.Clear()
        for var, coeff in terms:
            objective.SetCoefficient(var, objective.GetCoefficient(var) + coeff)
        objective.SetMinimization()

    def optimize(self) -> BackendStatus:
        status = self._solver.Solve()
        self._status = _STATUS_MAP.get(status, BackendStatus.ERROR)
        return self._status

    def get_status(self) -> BackendStatus:
        return self._status

    def get_value(self, var: pywraplp.Variable) -> float:
        return var.solution_value()

    def objective_value(self) -> float:
        return self._solver.Objective().Value()

    def export_lp(self) -> str:
        return self._solver.ExportModelAsLpFormat(False)
