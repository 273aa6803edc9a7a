from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

import pyomo.environ as pyo

from .oracle.base import SolveStatus
from .oracle.pyomo_oracle import status_from_results

log = logging.getLogger(__name__)


def rosenbrock(x: Sequence[Any]) -> Any:
    """Extended Rosenbrock function; minimum 0 at x = (1, ..., 1)."""
    if len(x) < 2:
        raise ValueError("rosenbrock needs at least two variables")
    return sum(100 * (x[i + 1] - x[i] ** 2) ** 2 + (1 - x[i]) ** 2 for i in range(len(x) - 1))


@dataclass(slots=True)
class NonlinearResult:
    status: SolveStatus
    objective: Optional[float]
    x: Optional[list[float]]
    message: str = ""


def minimize_unconstrained(
    objective: Callable[[Sequence[Any]], Any],
    x0: Sequence[float],
    solver: str = "ipopt",
    options: Optional[Mapping[str, Any]] = None,
    tee: bool = False,
) -> NonlinearResult:
    """Minimize `objective` over free variables starting at `x0` with one solver call.

    `objective` receives the list of pyomo variables and returns a pyomo
    expression, so any smooth function built from arithmetic and
    `pyo.exp`/`pyo.log`/... works.
    """
    if len(x0) == 0:
        raise ValueError("x0 must contain at least one component")
    opt = pyo.SolverFactory(solver)
    if not opt.available(exception_flag=False):
        raise RuntimeError(f"Solver '{solver}' is not available to pyomo")
    for k, v in (options or {}).items():
        opt.options[k] = v

    m = pyo.ConcreteModel(name="unconstrained")
    m.I = pyo.RangeSet(0, len(x0) - 1)
    m.x = pyo.Var(m.I, initialize={i: float(v) for i, v in enumerate(x0)})
    m.obj = pyo.Objective(expr=objective([m.x[i] for i in m.I]), sense=pyo.minimize)

    results = opt.solve(m, tee=tee, load_solutions=False)
    term = getattr(results.solver, "termination_condition", None)
    status = status_from_results(results)
    log.info("nlp solver=%s term=%s", solver, term)
    if status != SolveStatus.OPTIMAL:
        return NonlinearResult(status=status, objective=None, x=None, message=str(term))

    m.solutions.load_from(results)
    return NonlinearResult(
        status=status,
        objective=float(pyo.value(m.obj)),
        x=[float(m.x[i].value) for i in m.I],
        message=str(term),
    )


__all__ = ["rosenbrock", "NonlinearResult", "minimize_unconstrained"]
