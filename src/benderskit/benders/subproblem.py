from __future__ import annotations

import logging
from typing import Sequence

from ..oracle.base import LinearOracle
from ..oracle.model import LinearConstraint, LinearModel, Variable
from ..problem.instance import BendersInstance, y_name, z_name
from .types import Cut, CutType, SolveStatus, SubproblemResult

log = logging.getLogger(__name__)

FIX_PREFIX = "fix"
# phase-one objectives at or below this count as "recourse exists"
PHASE_ONE_TOL = 1e-7


def _slack_name(i: int) -> str:
    return f"s[{i}]"


class Subproblem:
    """Recourse LP evaluated at a master point.

    Template: min c.y  s.t.  A.z + E.y <= e,  y >= 0,  z free.
    `fixed_model(x_k)` pins z to x_k through equality rows `fix[z[j]]`;
    their duals are the cut slopes.
    """

    def __init__(self, instance: BendersInstance, feasibility_cuts: bool = True):
        self.instance = instance
        self.feasibility_cuts = bool(feasibility_cuts)
        self.template: LinearModel | None = None

    def initialize(self) -> None:
        inst = self.instance
        m = LinearModel(name="subproblem")
        for j in range(inst.n):
            m.add_variable(Variable(z_name(j), lb=None))
        for j in range(inst.m):
            m.add_variable(Variable(y_name(j), lb=0.0))
        for i in range(inst.rows):
            coeffs = {z_name(j): inst.A[i][j] for j in range(inst.n)}
            coeffs.update({y_name(j): inst.E[i][j] for j in range(inst.m)})
            m.add_constraint(LinearConstraint(f"row[{i}]", coeffs, "<=", inst.e[i]))
        m.objective = {y_name(j): inst.c[j] for j in range(inst.m)}
        self.template = m

    def _fixing(self, x_k: Sequence[float]) -> dict[str, float]:
        if len(x_k) != self.instance.n:
            raise ValueError(f"master point has {len(x_k)} entries, expected {self.instance.n}")
        return {z_name(j): float(x_k[j]) for j in range(self.instance.n)}

    def fixed_model(self, x_k: Sequence[float]) -> LinearModel:
        assert self.template is not None, "Call initialize() before fixed_model()"
        return self.template.with_fixed(self._fixing(x_k), prefix=FIX_PREFIX)

    def phase_one_model(self, x_k: Sequence[float]) -> LinearModel:
        """min sum(s)  s.t.  A.z + E.y - s <= e,  s, y >= 0,  z fixed at x_k."""
        assert self.template is not None, "Call initialize() before phase_one_model()"
        m = self.template.copy(name="subproblem_phase1")
        for i in range(self.instance.rows):
            m.add_variable(Variable(_slack_name(i), lb=0.0))
        for row in m.constraints:
            i = int(row.name[row.name.find("[") + 1 : row.name.find("]")])
            row.coeffs[_slack_name(i)] = -1.0
        m.objective = {_slack_name(i): 1.0 for i in range(self.instance.rows)}
        return m.with_fixed(self._fixing(x_k), prefix=FIX_PREFIX)

    def _fix_duals(self, duals: dict[str, float]) -> list[float]:
        return [float(duals.get(f"{FIX_PREFIX}[{z_name(j)}]", 0.0)) for j in range(self.instance.n)]

    def unbounded_variables(self) -> list[str]:
        assert self.template is not None
        return [n for n in self.template.unbounded_below() if not n.startswith("z[")]

    def evaluate(self, oracle: LinearOracle, x_k: Sequence[float], iteration: int = 0) -> SubproblemResult:
        """Solve the recourse LP at x_k and derive the matching cut."""
        point = tuple(float(v) for v in x_k)
        res = oracle.solve(self.fixed_model(point))
        if res.status == SolveStatus.OPTIMAL:
            lam = self._fix_duals(res.duals)
            y = [float(res.primal[y_name(j)]) for j in range(self.instance.m)]
            cut = Cut(
                cut_type=CutType.OPTIMALITY,
                constant=float(res.objective),
                slopes=tuple(lam),
                point=point,
                iteration=iteration,
                name=f"opt[{iteration}]",
            )
            return SubproblemResult(status=res.status, objective=float(res.objective), y=y, duals=lam, cut=cut)

        if res.status != SolveStatus.INFEASIBLE or not self.feasibility_cuts:
            return SubproblemResult(status=res.status, message=res.message)

        p1 = oracle.solve(self.phase_one_model(point))
        if p1.status != SolveStatus.OPTIMAL:
            return SubproblemResult(
                status=SolveStatus.INFEASIBLE,
                message=f"phase-one subproblem returned {p1.status.value}",
            )
        if float(p1.objective) <= PHASE_ONE_TOL:
            return SubproblemResult(
                status=SolveStatus.INFEASIBLE,
                message=f"phase-one value {float(p1.objective):.3g} does not separate x={list(point)}",
            )
        mu = self._fix_duals(p1.duals)
        cut = Cut(
            cut_type=CutType.FEASIBILITY,
            constant=float(p1.objective),
            slopes=tuple(mu),
            point=point,
            iteration=iteration,
            name=f"feas[{iteration}]",
        )
        log.info("subproblem infeasible at x=%s; phase-one value=%.6g", list(point), float(p1.objective))
        return SubproblemResult(status=SolveStatus.INFEASIBLE, duals=mu, cut=cut, message="no recourse")


__all__ = ["Subproblem", "FIX_PREFIX"]
