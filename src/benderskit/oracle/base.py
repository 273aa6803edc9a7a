from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .model import LinearModel

if TYPE_CHECKING:  # pragma: no cover
    from ..diagnostics.iis import Conflict


class SolveStatus(str, Enum):
    OPTIMAL = "OPTIMAL"
    FEASIBLE = "FEASIBLE"
    INFEASIBLE = "INFEASIBLE"
    UNBOUNDED = "UNBOUNDED"
    UNKNOWN = "UNKNOWN"


@dataclass(slots=True)
class OracleResult:
    """Outcome of one oracle call.

    `primal`, `objective` and `duals` are only meaningful when `status` is
    OPTIMAL; `duals` is empty for models with integer variables. `bound` is
    the best bound the solver proved on the objective, when it reports one.
    """

    status: SolveStatus
    objective: Optional[float] = None
    bound: Optional[float] = None
    primal: dict[str, float] = field(default_factory=dict)
    duals: dict[str, float] = field(default_factory=dict)
    message: str = ""

    @property
    def is_optimal(self) -> bool:
        return self.status == SolveStatus.OPTIMAL


class LinearOracle(ABC):
    """Black-box LP/MIP solve over a plain-data `LinearModel`."""

    name: str = "oracle"

    @abstractmethod
    def solve(self, model: LinearModel) -> OracleResult:
        """Solve `model` and report status, primal values, objective and duals."""

    def compute_iis(self, model: LinearModel) -> "Conflict":
        """Return an irreducible inconsistent subsystem of an infeasible model.

        The default runs a deletion filter through `solve`; oracles backed by
        a solver with a native conflict refiner may override it.
        """
        from ..diagnostics.iis import deletion_filter

        return deletion_filter(self, model)


__all__ = ["SolveStatus", "OracleResult", "LinearOracle"]
