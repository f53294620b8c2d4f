from dataclasses import dataclass
from typing import Optional

import pytest

from mpcolor import BackendStatus, Sense


@dataclass(frozen=True)
class FakeVar:
    name: str
    lower: float
    upper: float
    integer: bool


class RecordingBackend:
    """MipBackend that records the model and replays canned solution values."""

    def __init__(self, status: BackendStatus = BackendStatus.OPTIMAL, values: Optional[dict[str, float]] = None):
        self.variables: list[FakeVar] = []
        self.constraints: list[tuple[list, Sense, float, str]] = []
        self.objective: list[tuple[FakeVar, float]] = []
        self.values = values or {}
        self._status_on_solve = status
        self._status = BackendStatus.NOT_SOLVED

    def var(self, name: str) -> FakeVar:
        return next(v for v in self.variables if v.name == name)

    def add_binary_variable(self, name, fixed=None, upper=1):
        if fixed is not None:
            var = FakeVar(name, fixed, fixed, True)
        else:
            var = FakeVar(name, 0, upper, True)
        self.variables.append(var)
        return var

    def add_continuous_variable(self, lower, upper, name):
        var = FakeVar(name, lower, upper, False)
        self.variables.append(var)
        return var

    def add_constraint(self, terms, sense, rhs, name):
        self.constraints.append((list(terms), sense, rhs, name))

    def set_objective(self, terms):
        self.objective = list(terms)

    def optimize(self):
        self._status = self._status_on_solve
        return self._status

    def get_status(self):
        return self._status

    def get_value(self, var):
        return self.values.get(var.name, var.lower)

    def objective_value(self):
        return sum(coeff * self.get_value(var) for var, coeff in self.objective)

    def export_lp(self):
        lines = ["Minimize", " + ".join(f"{c} {v.name}" for v, c in self.objective), "Subject To"]
        for terms, sense, rhs, name in self.constraints:
            lhs = " + ".join(f"{c} {v.name}" for v, c in terms)
            lines.append(f"{name}: {lhs} {sense.value} {rhs}")
        return "\n".join(lines)


def min_feasible_slack(backend: RecordingBackend, slack: FakeVar, assignment: dict[str, float]) -> float:
    """Smallest slack value satisfying every recorded constraint on it, given the other variables."""
    lower = slack.lower
    for terms, sense, rhs, _ in backend.constraints:
        coeff = sum(c for v, c in terms if v == slack)
        if coeff == 0:
            continue
        rest = sum(c * assignment[v.name] for v, c in terms if v != slack)
        if sense is Sense.GE and coeff > 0:
            lower = max(lower, (rhs - rest) / coeff)
        elif sense is Sense.LE and coeff < 0:
            lower = max(lower, (rhs - rest) / coeff)
    return lower


@pytest.fixture
def recording_backend():
    return RecordingBackend()


@pytest.fixture
def make_backend():
    return RecordingBackend


@pytest.fixture
def slack_bound():
    return min_feasible_slack
