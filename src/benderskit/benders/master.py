from __future__ import annotations

import logging
from typing import Optional

from ..oracle.base import LinearOracle
from ..oracle.model import LinearConstraint, LinearModel, Variable
from ..problem.instance import BendersInstance, x_name
from .types import Cut, CutType, SolveResult, SolveStatus

log = logging.getLogger(__name__)

THETA = "theta"


class MasterProblem:
    """Master problem: min f.x + theta over integer x, plus appended cuts.

    The model is plain data owned by this object; the only mutation after
    `initialize()` is `add_cut`, which appends one row per cut.
    """

    def __init__(self, instance: BendersInstance, theta_lower_bound: Optional[float] = -1e3):
        self.instance = instance
        self.theta_lower_bound = None if theta_lower_bound is None else float(theta_lower_bound)
        self.model: LinearModel | None = None
        self._cuts: list[Cut] = []

    def initialize(self) -> None:
        """Build or reset the master model. Called once before iteration."""
        inst = self.instance
        m = LinearModel(name="master")
        for j in range(inst.n):
            m.add_variable(Variable(x_name(j), lb=0.0, ub=inst.x_bound(j), integer=inst.x_integer))
        m.add_variable(Variable(THETA, lb=self.theta_lower_bound))
        m.objective = {x_name(j): inst.f[j] for j in range(inst.n)}
        m.objective[THETA] = 1.0
        self.model = m
        self._cuts = []

    def solve(self, oracle: LinearOracle) -> SolveResult:
        assert self.model is not None, "Call initialize() before solve()"
        res = oracle.solve(self.model)
        if res.status != SolveStatus.OPTIMAL:
            return SolveResult(status=res.status, objective=None, x=None, message=res.message)
        x = []
        for j in range(self.instance.n):
            v = float(res.primal[x_name(j)])
            # integer components come back with solver tolerance noise
            x.append(float(round(v)) if self.instance.x_integer else v)
        obj = float(res.objective)
        # a MIP stopped at its gap tolerance proves only the dual bound
        lb = obj if res.bound is None else min(obj, float(res.bound))
        return SolveResult(
            status=SolveStatus.OPTIMAL,
            objective=obj,
            x=x,
            theta=float(res.primal[THETA]),
            lower_bound=lb,
        )

    def add_cut(self, cut: Cut) -> None:
        """Append `cut` in linear form.

        theta >= f_k + lam.(x - x_k) is stored as theta - lam.x >= f_k - lam.x_k;
        0 >= f_k + lam.(x - x_k) is stored as lam.x <= lam.x_k - f_k.
        """
        assert self.model is not None, "Call initialize() before add_cut()"
        if len(cut.slopes) != self.instance.n:
            raise ValueError(f"cut has {len(cut.slopes)} slopes, master has {self.instance.n} variables")
        slopes, intercept = cut.linear_form()
        name = cut.name or f"cut[{len(self._cuts)}]"
        if cut.cut_type == CutType.OPTIMALITY:
            coeffs = {x_name(j): -slopes[j] for j in range(self.instance.n)}
            coeffs[THETA] = 1.0
            row = LinearConstraint(name, coeffs, ">=", intercept)
        else:
            coeffs = {x_name(j): slopes[j] for j in range(self.instance.n)}
            row = LinearConstraint(name, coeffs, "<=", -intercept)
        self.model.add_constraint(row)
        self._cuts.append(cut)
        log.debug("master: added %s cut '%s': %s", cut.cut_type.value, name, row.describe())

    @property
    def cuts(self) -> tuple[Cut, ...]:
        return tuple(self._cuts)

    def unbounded_variables(self) -> list[str]:
        assert self.model is not None
        return self.model.unbounded_below()


__all__ = ["MasterProblem", "THETA"]
