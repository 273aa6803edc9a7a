from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ..oracle.base import SolveStatus


class CutType(str, Enum):
    OPTIMALITY = "OPTIMALITY"
    FEASIBILITY = "FEASIBILITY"


class TerminationStatus(str, Enum):
    OPTIMAL = "OPTIMAL"
    MAX_ITER = "MAX_ITER"
    TIME_LIMIT = "TIME_LIMIT"
    INFEASIBLE = "INFEASIBLE"
    SUBPROBLEM_INFEASIBLE = "SUBPROBLEM_INFEASIBLE"
    UNBOUNDED = "UNBOUNDED"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class Cut:
    """Affine function of the master variables derived from one subproblem solve.

    value(x) = constant + sum(slopes[j] * (x[j] - point[j]))

    OPTIMALITY:  theta >= value(x)
    FEASIBILITY: 0     >= value(x)
    """

    cut_type: CutType
    constant: float
    slopes: tuple[float, ...]
    point: tuple[float, ...]
    iteration: int = 0
    name: str = ""

    def __post_init__(self) -> None:
        if len(self.slopes) != len(self.point):
            raise ValueError(
                f"cut slopes ({len(self.slopes)}) and point ({len(self.point)}) differ in length"
            )

    def value_at(self, x: Sequence[float]) -> float:
        if len(x) != len(self.point):
            raise ValueError(f"cut evaluated at a point of length {len(x)}, expected {len(self.point)}")
        return float(self.constant) + sum(
            float(s) * (float(xj) - float(pj)) for s, xj, pj in zip(self.slopes, x, self.point)
        )

    def linear_form(self) -> tuple[tuple[float, ...], float]:
        """(slopes, intercept) with value(x) = slopes.x + intercept."""
        intercept = float(self.constant) - sum(float(s) * float(p) for s, p in zip(self.slopes, self.point))
        return tuple(float(s) for s in self.slopes), intercept


@dataclass(frozen=True, slots=True)
class IterationRecord:
    iteration: int
    x: tuple[float, ...]
    subproblem_objective: Optional[float]
    lower_bound: Optional[float]
    upper_bound: Optional[float]
    gap: Optional[float]
    cut: Optional[Cut] = None


@dataclass(slots=True)
class SolveResult:
    """Master solve outcome."""

    status: SolveStatus
    objective: Optional[float]
    x: Optional[list[float]]
    theta: Optional[float] = None
    lower_bound: Optional[float] = None
    message: str = ""


@dataclass(slots=True)
class SubproblemResult:
    status: SolveStatus
    objective: Optional[float] = None
    y: Optional[list[float]] = None
    duals: Optional[list[float]] = None
    cut: Optional[Cut] = None
    message: str = ""

    @property
    def is_feasible(self) -> bool:
        return self.status == SolveStatus.OPTIMAL


__all__ = [
    "SolveStatus",
    "CutType",
    "TerminationStatus",
    "Cut",
    "IterationRecord",
    "SolveResult",
    "SubproblemResult",
]
