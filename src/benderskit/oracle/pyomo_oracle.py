from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING, Any, Mapping, Optional

import pyomo.environ as pyo
from pyomo.contrib.iis import compute_infeasibility_explanation

from .base import LinearOracle, OracleResult, SolveStatus
from .model import LinearModel

if TYPE_CHECKING:  # pragma: no cover
    from ..diagnostics.iis import Conflict

log = logging.getLogger(__name__)

TC = pyo.TerminationCondition

_OPTIMAL = (TC.optimal, TC.locallyOptimal, TC.globallyOptimal)
_FEASIBLE = (TC.feasible, TC.maxTimeLimit)
_INFEASIBLE = (TC.infeasible, TC.invalidProblem)

# Relative MIP gap option per SolverFactory name
MIP_GAP_OPTIONS: dict[str, str] = {
    "appsi_highs": "mip_rel_gap",
    "highs": "mip_rel_gap",
    "glpk": "mipgap",
    "cbc": "ratioGap",
    "appsi_cbc": "ratioGap",
    "cplex": "mip_tolerances_mipgap",
    "cplex_direct": "mip_tolerances_mipgap",
    "gurobi": "MIPGap",
    "gurobi_direct": "MIPGap",
    "appsi_gurobi": "MIPGap",
}

# Entries of the MIS listing written by pyomo.contrib.iis
_MIS_ENTRY = re.compile(r"\t(?:constraint: (?P<row>[^\t\n]+)|(?P<side>lb|ub) of var (?P<var>[^\t\n]+))")
_MIS_HEADER = "Computed Minimal Intractable System (MIS)!"


def status_from_results(results: Any) -> SolveStatus:
    """Map a pyomo results object onto `SolveStatus`.

    `infeasibleOrUnbounded` comes back as UNKNOWN; `PyomoOracle` resolves it
    with a second, zero-objective solve.
    """
    term = getattr(results.solver, "termination_condition", None)
    if term in _OPTIMAL:
        return SolveStatus.OPTIMAL
    if term in _FEASIBLE:
        return SolveStatus.FEASIBLE
    if term in _INFEASIBLE:
        return SolveStatus.INFEASIBLE
    if term == TC.unbounded:
        return SolveStatus.UNBOUNDED
    return SolveStatus.UNKNOWN


def reported_bound(results: Any, sense: str = "min") -> Optional[float]:
    """Best objective bound in a legacy results object, or None when absent or infinite."""
    problem = getattr(results, "problem", None)
    raw = getattr(problem, "lower_bound" if sense == "min" else "upper_bound", None)
    try:
        val = float(raw)
    except (TypeError, ValueError):
        return None
    return val if math.isfinite(val) else None


def build_pyomo_model(model: LinearModel) -> pyo.ConcreteModel:
    """Translate a `LinearModel` into a fresh pyomo `ConcreteModel`.

    Variables live in `m.x[name]`, rows in `m.rows[name]`. Rows without any
    nonzero coefficient are left out; callers check them separately.
    """
    m = pyo.ConcreteModel(name=model.name)
    m.V = pyo.Set(initialize=model.variable_names(), ordered=True)
    m.x = pyo.Var(m.V)
    for var in model.variables:
        pv = m.x[var.name]
        pv.domain = pyo.Integers if var.integer else pyo.Reals
        pv.setlb(var.lb)
        pv.setub(var.ub)

    rows = {c.name: c for c in model.constraints if not c.is_trivial()}
    m.R = pyo.Set(initialize=list(rows), ordered=True)

    def _row_rule(m, name):
        row = rows[name]
        body = sum(float(a) * m.x[v] for v, a in row.coeffs.items() if float(a) != 0.0)
        if row.sense == "<=":
            return body <= float(row.rhs)
        if row.sense == ">=":
            return body >= float(row.rhs)
        return body == float(row.rhs)

    m.rows = pyo.Constraint(m.R, rule=_row_rule)

    expr = float(model.objective_constant) + sum(
        float(a) * m.x[v] for v, a in model.objective.items() if float(a) != 0.0
    )
    m.obj = pyo.Objective(expr=expr, sense=pyo.minimize if model.sense == "min" else pyo.maximize)
    return m


def _effective_bounds(lb: Optional[float], ub: Optional[float], integer: bool) -> tuple[Optional[float], Optional[float]]:
    if not integer:
        return lb, ub
    return (
        None if lb is None else float(math.ceil(lb - 1e-9)),
        None if ub is None else float(math.floor(ub + 1e-9)),
    )


def _resting(lb: Optional[float], ub: Optional[float]) -> float:
    # Value for a variable nothing pushes on
    if lb is not None:
        return float(lb)
    if ub is not None:
        return float(ub)
    return 0.0


def solve_without_rows(model: LinearModel) -> OracleResult:
    """Solve a model whose rows are all constant, variable by variable.

    With no coupling rows each variable sits at the bound its objective
    coefficient prefers, or at rest when the coefficient is zero.
    """
    direction = 1.0 if model.sense == "min" else -1.0
    primal: dict[str, float] = {}
    rays: list[str] = []
    for var in model.variables:
        lb, ub = _effective_bounds(var.lb, var.ub, var.integer)
        if lb is not None and ub is not None and lb > ub:
            return OracleResult(
                status=SolveStatus.INFEASIBLE,
                message=f"bounds of '{var.name}' admit no value: [{var.lb}, {var.ub}]",
            )
        cost = direction * float(model.objective.get(var.name, 0.0))
        target = lb if cost > 0 else ub if cost < 0 else _resting(lb, ub)
        if target is None:
            rays.append(var.name)
            continue
        primal[var.name] = float(target)

    if rays:
        return OracleResult(
            status=SolveStatus.UNBOUNDED,
            message=f"objective improves without limit along {', '.join(rays)}",
        )
    objective = model.objective_value(primal)
    duals = {} if model.is_mip else {c.name: 0.0 for c in model.constraints}
    return OracleResult(
        status=SolveStatus.OPTIMAL,
        objective=objective,
        bound=objective,
        primal=primal,
        duals=duals,
        message="no rows",
    )


class _LoadingSolver:
    """Solver handle for `pyomo.contrib.iis`.

    Solves without automatic loading, which appsi interfaces refuse on
    infeasible models, and loads the solution only when it is optimal.
    """

    def __init__(self, solver: Any):
        self._solver = solver

    def available(self, exception_flag: bool = True) -> bool:
        return self._solver.available(exception_flag=exception_flag)

    def solve(self, m: Any, tee: bool = False) -> Any:
        results = self._solver.solve(m, tee=tee, load_solutions=False)
        if pyo.check_optimal_termination(results):
            m.solutions.load_from(results)
        return results


class _Capture(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.INFO)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


class PyomoOracle(LinearOracle):
    """Oracle backed by any pyomo `SolverFactory` plugin.

    A fresh `ConcreteModel` is built for every call, so no basis, fixing row
    or other solver state survives between solves. Duals are imported through
    a `dual` suffix for continuous models only. Models without rows are
    decided here, without a solver call.
    """

    def __init__(
        self,
        solver: str = "appsi_highs",
        options: Optional[Mapping[str, Any]] = None,
        tee: bool = False,
        executable: str | None = None,
        mip_gap: float | None = None,
    ):
        self.name = str(solver)
        self.tee = bool(tee)
        self._solver = pyo.SolverFactory(self.name)
        if executable:
            self._solver.set_executable(executable)
        if not self._solver.available(exception_flag=False):
            raise RuntimeError(f"Solver '{self.name}' is not available to pyomo")
        if mip_gap is not None:
            key = MIP_GAP_OPTIONS.get(self.name)
            if key is None:
                log.warning("No MIP gap option known for solver '%s'; using its default", self.name)
            else:
                self._solver.options[key] = float(mip_gap)
        for k, v in (options or {}).items():
            self._solver.options[k] = v

    def solve(self, model: LinearModel) -> OracleResult:
        return self._solve(model, disambiguate=True)

    def _solve(self, model: LinearModel, disambiguate: bool) -> OracleResult:
        violated = [c.name for c in model.constraints if c.is_trivial() and not c.is_satisfied({})]
        if violated:
            return OracleResult(
                status=SolveStatus.INFEASIBLE,
                message=f"constant row(s) violated: {', '.join(violated)}",
            )
        if all(c.is_trivial() for c in model.constraints):
            res = solve_without_rows(model)
            log.debug("oracle=%s model=%s rowless status=%s", self.name, model.name, res.status.value)
            return res

        m = build_pyomo_model(model)
        if not model.is_mip:
            m.dual = pyo.Suffix(direction=pyo.Suffix.IMPORT)
        results = self._solver.solve(m, tee=self.tee, load_solutions=False)
        term = getattr(results.solver, "termination_condition", None)
        status = status_from_results(results)
        if term == TC.infeasibleOrUnbounded:
            status = self._resolve_ambiguous(model) if disambiguate else SolveStatus.INFEASIBLE
        log.debug("oracle=%s model=%s term=%s status=%s", self.name, model.name, term, status.value)
        if status != SolveStatus.OPTIMAL:
            return OracleResult(status=status, message=str(term))

        m.solutions.load_from(results)
        primal: dict[str, float] = {}
        for var in model.variables:
            val = m.x[var.name].value
            primal[var.name] = float(val) if val is not None else _resting(var.lb, var.ub)

        duals: dict[str, float] = {}
        if not model.is_mip:
            for row in model.constraints:
                if row.name in m.R:
                    duals[row.name] = float(m.dual.get(m.rows[row.name], 0.0))
                else:
                    duals[row.name] = 0.0

        return OracleResult(
            status=SolveStatus.OPTIMAL,
            objective=model.objective_value(primal),
            bound=reported_bound(results, model.sense),
            primal=primal,
            duals=duals,
            message=str(term),
        )

    def _resolve_ambiguous(self, model: LinearModel) -> SolveStatus:
        phase_one = self._solve(model.feasibility_version(), disambiguate=False)
        if phase_one.status == SolveStatus.OPTIMAL:
            return SolveStatus.UNBOUNDED
        if phase_one.status == SolveStatus.INFEASIBLE:
            return SolveStatus.INFEASIBLE
        return SolveStatus.UNKNOWN

    def compute_iis(self, model: LinearModel) -> "Conflict":
        """IIS through pyomo's minimal-infeasible-system search.

        `pyomo.contrib.iis.compute_infeasibility_explanation` proposes the
        conflicting rows and bounds; the deletion filter then confirms the
        proposal and trims it to an irreducible set. When pyomo cannot name
        a system, or names one that is not infeasible, the deletion filter
        runs over the whole model.
        """
        from ..diagnostics.iis import deletion_filter

        if all(c.is_trivial() for c in model.constraints) or any(
            c.is_trivial() and not c.is_satisfied({}) for c in model.constraints
        ):
            return deletion_filter(self, model)
        if self._solve(model.feasibility_version(), disambiguate=True).status != SolveStatus.INFEASIBLE:
            return deletion_filter(self, model)

        candidate = self._mis_candidate(model)
        if candidate is None:
            return deletion_filter(self, model)
        try:
            return deletion_filter(self, candidate)
        except ValueError:
            log.warning("MIS proposed for '%s' is feasible; searching the whole model", model.name)
            return deletion_filter(self, model)

    def _mis_candidate(self, model: LinearModel) -> LinearModel | None:
        m = build_pyomo_model(model.feasibility_version())
        row_of = {m.rows[name].name: name for name in m.R}
        var_of = {m.x[name].name: name for name in m.V}

        sink = logging.Logger(f"{__name__}.mis", logging.INFO)
        capture = _Capture()
        sink.addHandler(capture)
        try:
            compute_infeasibility_explanation(m, solver=_LoadingSolver(self._solver), tee=self.tee, logger=sink)
        except Exception as exc:  # pyomo signals "feasible" with a bare Exception
            log.warning("pyomo MIS search failed on '%s': %s", model.name, exc)
            return None
        finally:
            sink.removeHandler(capture)

        text = "\n".join(capture.messages)
        if _MIS_HEADER not in text:
            log.info("pyomo could not isolate a MIS for '%s'", model.name)
            return None

        rows: set[str] = set()
        bounds: set[tuple[str, str]] = set()
        for hit in _MIS_ENTRY.finditer(text.split(_MIS_HEADER, 1)[1]):
            if hit.group("row") is not None:
                name = row_of.get(hit.group("row").strip())
                if name is not None:
                    rows.add(name)
            else:
                name = var_of.get(hit.group("var").strip())
                if name is not None:
                    bounds.add((name, hit.group("side")))
        log.debug("pyomo MIS for '%s': rows=%s bounds=%s", model.name, sorted(rows), sorted(bounds))
        if not rows and not bounds:
            return None

        candidate = model.copy()
        candidate.constraints = [c for c in candidate.constraints if c.name in rows]
        for var in candidate.variables:
            if (var.name, "lb") not in bounds:
                var.lb = None
            if (var.name, "ub") not in bounds:
                var.ub = None
        return candidate


__all__ = ["PyomoOracle", "MIP_GAP_OPTIONS", "build_pyomo_model", "reported_bound", "solve_without_rows", "status_from_results"]
