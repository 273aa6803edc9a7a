from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..oracle.base import SolveStatus
from ..oracle.model import LinearModel

if TYPE_CHECKING:  # pragma: no cover
    from ..oracle.base import LinearOracle

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConflictMember:
    kind: str  # "constraint", "lower" or "upper"
    name: str  # constraint name, or variable name for bounds
    expression: str

    @property
    def label(self) -> str:
        if self.kind == "lower":
            return f"{self.name}.lb"
        if self.kind == "upper":
            return f"{self.name}.ub"
        return self.name


@dataclass(slots=True)
class Conflict:
    """Irreducible inconsistent subsystem of a model.

    `submodel` keeps every variable of the source model but only the rows and
    finite bounds that belong to the conflict.
    """

    model_name: str
    members: list[ConflictMember] = field(default_factory=list)
    submodel: LinearModel | None = None

    def as_model(self) -> LinearModel:
        if self.submodel is None:
            raise ValueError("conflict has no sub-model")
        return self.submodel

    def constraint_names(self) -> list[str]:
        return [m.name for m in self.members if m.kind == "constraint"]

    def bound_labels(self) -> list[str]:
        return [m.label for m in self.members if m.kind != "constraint"]

    def format(self) -> str:
        lines = [f"IIS for '{self.model_name}' ({len(self.members)} member(s)):"]
        for m in self.members:
            lines.append(f"  {m.label}: {m.expression}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.members)


def _is_infeasible(oracle: "LinearOracle", model: LinearModel) -> bool:
    res = oracle.solve(model)
    if res.status == SolveStatus.INFEASIBLE:
        return True
    if res.status in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE):
        return False
    raise RuntimeError(
        f"oracle '{oracle.name}' returned {res.status.value} while testing feasibility of '{model.name}'"
        + (f" ({res.message})" if res.message else "")
    )


def deletion_filter(oracle: "LinearOracle", model: LinearModel) -> Conflict:
    """Shrink an infeasible model to an IIS, one member at a time.

    Rows are tried first, then finite variable bounds. A member is dropped
    for good when the model stays infeasible without it; what survives is
    infeasible and every proper subset of it is feasible.
    """
    current = model.feasibility_version()
    if not _is_infeasible(oracle, current):
        raise ValueError(f"model '{model.name}' is feasible; there is no conflict to extract")

    for row in model.constraints:
        trial = current.without_constraints([row.name])
        if _is_infeasible(oracle, trial):
            current = trial

    for var in model.variables:
        if var.lb is not None:
            trial = current.with_bounds(var.name, lb=None)
            if _is_infeasible(oracle, trial):
                current = trial
        if var.ub is not None:
            trial = current.with_bounds(var.name, ub=None)
            if _is_infeasible(oracle, trial):
                current = trial

    members: list[ConflictMember] = []
    for row in current.constraints:
        members.append(ConflictMember("constraint", row.name, row.describe()))
    for var in current.variables:
        if var.lb is not None:
            members.append(ConflictMember("lower", var.name, f"{var.name} >= {float(var.lb):g}"))
        if var.ub is not None:
            members.append(ConflictMember("upper", var.name, f"{var.name} <= {float(var.ub):g}"))

    log.info("IIS for '%s': %d of %d rows, %d bound(s)",
             model.name, len(current.constraints), len(model.constraints),
             sum(1 for m in members if m.kind != "constraint"))
    return Conflict(model_name=model.name, members=members, submodel=current.copy(name=f"{model.name}_iis"))


__all__ = ["ConflictMember", "Conflict", "deletion_filter"]
