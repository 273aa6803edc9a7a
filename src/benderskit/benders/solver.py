from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from ..config import RunConfig
from ..oracle.base import LinearOracle
from .master import MasterProblem
from .subproblem import Subproblem
from .types import Cut, CutType, IterationRecord, SolveStatus, TerminationStatus

log = logging.getLogger(__name__)


# Limit how many coefficients to list per cut in debug
DEBUG_COEFFS_TOP_K: int = 10
# treat smaller coefficients as zero in debug output
COEFF_ZERO_TOL: float = 1e-12


def relative_gap(lb: Optional[float], ub: Optional[float], floor: float = 1e-9) -> Optional[float]:
    """(ub - lb) / |ub|, or None when either bound is missing or |ub| < floor."""
    if lb is None or ub is None:
        return None
    if abs(ub) < floor:
        return None
    return (ub - lb) / abs(ub)


def _log_cut(iteration: int, cut: Cut) -> None:
    if not log.isEnabledFor(logging.DEBUG):
        return
    nz_items = [(j, float(v)) for j, v in enumerate(cut.slopes) if abs(float(v)) > COEFF_ZERO_TOL]
    if nz_items:
        vmin = min(v for _, v in nz_items)
        vmax = max(v for _, v in nz_items)
        log.debug(
            "[CUT DEBUG] it=%d type=%s const=%.6g nnz=%d range=[%.3g,%.3g]",
            iteration, cut.cut_type.value, float(cut.constant), len(nz_items), vmin, vmax,
        )
    else:
        log.debug("[CUT DEBUG] it=%d type=%s const=%.6g nnz=0", iteration, cut.cut_type.value, float(cut.constant))
    nz_items.sort(key=lambda kv: abs(kv[1]), reverse=True)
    kmax = max(0, int(DEBUG_COEFFS_TOP_K))
    for j, v in nz_items[:kmax]:
        log.debug("lambda[%d] = %.6g", j, v)
    if len(nz_items) > kmax > 0:
        log.debug("... (%d coefficient(s) omitted)", len(nz_items) - kmax)


def _fmt(v: Optional[float], spec: str = ".6g") -> str:
    return "-" if v is None else format(float(v), spec)


@dataclass(slots=True)
class BendersRunResult:
    status: TerminationStatus
    iterations: int
    best_lower_bound: Optional[float]
    best_upper_bound: Optional[float]
    gap: Optional[float] = None
    x: Optional[list[float]] = None
    y: Optional[list[float]] = None
    cuts: list[Cut] = field(default_factory=list)
    history: list[IterationRecord] = field(default_factory=list)
    message: str = ""
    elapsed_s: float = 0.0

    @property
    def converged(self) -> bool:
        return self.status == TerminationStatus.OPTIMAL

    @property
    def objective(self) -> Optional[float]:
        return self.best_upper_bound

    def format_summary(self) -> str:
        lines = [
            f"{'it':>4} {'LB':>14} {'UB':>14} {'gap':>10} {'sub obj':>12}  x_k",
        ]
        for r in self.history:
            lines.append(
                f"{r.iteration:>4d} {_fmt(r.lower_bound):>14} {_fmt(r.upper_bound):>14} "
                f"{_fmt(r.gap, '.3g'):>10} {_fmt(r.subproblem_objective):>12}  "
                + "[" + ", ".join(f"{v:g}" for v in r.x) + "]"
            )
        lines.append(
            f"status={self.status.value} iterations={self.iterations} "
            f"objective={_fmt(self.objective)} LB={_fmt(self.best_lower_bound)} gap={_fmt(self.gap, '.3g')}"
        )
        if self.x is not None:
            lines.append("x* = [" + ", ".join(f"{v:g}" for v in self.x) + "]")
        if self.y is not None:
            lines.append("y* = [" + ", ".join(f"{v:.6g}" for v in self.y) + "]")
        if self.cuts:
            lines.append("cuts:")
            for c in self.cuts:
                lines.append(
                    f"  {c.name or '-'} {c.cut_type.value.lower()}: f_k={c.constant:.6g} "
                    f"lambda=[{', '.join(f'{s:.6g}' for s in c.slopes)}] "
                    f"x_k=[{', '.join(f'{p:g}' for p in c.point)}]"
                )
        if self.message:
            lines.append(self.message)
        return "\n".join(lines)


class BendersSolver:
    """Benders loop controller.

    Repeats master solve -> subproblem solve -> cut until the relative gap
    between the best lower bound (dual bound of the master) and the best upper bound
    (first-stage cost plus recourse cost at a master point) is within
    tolerance, or a limit is hit. Master and subproblem are owned by the
    solver for the duration of `run()`.
    """

    def __init__(
        self,
        master: MasterProblem,
        subproblem: Subproblem,
        oracle: LinearOracle,
        cfg: RunConfig | None = None,
        subproblem_oracle: LinearOracle | None = None,
    ):
        self.master = master
        self.subproblem = subproblem
        self.oracle = oracle
        self.subproblem_oracle = subproblem_oracle or oracle
        self.cfg = cfg or RunConfig()

    def _converged(self, lb: Optional[float], ub: Optional[float], gap: Optional[float], tol: float) -> bool:
        if lb is None or ub is None:
            return False
        if gap is not None:
            return gap <= tol
        abs_tol = self.cfg.abs_tolerance
        return abs_tol is not None and (ub - lb) <= abs_tol

    def run(self, max_iterations: int | None = None, tolerance: float | None = None) -> BendersRunResult:
        t0 = time.time()
        max_it = int(self.cfg.max_iterations if max_iterations is None else max_iterations)
        tol = float(self.cfg.tolerance if tolerance is None else tolerance)
        if max_it < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_it}")
        print_every = int(self.cfg.print_every or 0)

        self.master.initialize()
        self.subproblem.initialize()
        inst = self.master.instance
        log.info("Initialized master (n=%d) and subproblem (m=%d, rows=%d)", inst.n, inst.m, inst.rows)

        best_lb: Optional[float] = None
        best_ub: Optional[float] = None
        best_x: Optional[list[float]] = None
        best_y: Optional[list[float]] = None
        gap: Optional[float] = None
        history: list[IterationRecord] = []

        def _finish(status: TerminationStatus, iterations: int, message: str = "") -> BendersRunResult:
            return BendersRunResult(
                status=status,
                iterations=iterations,
                best_lower_bound=best_lb,
                best_upper_bound=best_ub,
                gap=gap,
                x=best_x,
                y=best_y,
                cuts=list(self.master.cuts),
                history=list(history),
                message=message,
                elapsed_s=time.time() - t0,
            )

        for it in range(1, max_it + 1):
            if it > 1 and time.time() - t0 > self.cfg.time_limit_s:
                log.warning("Time limit reached after %d iterations", it - 1)
                return _finish(
                    TerminationStatus.TIME_LIMIT, it - 1,
                    f"time limit of {self.cfg.time_limit_s}s reached before convergence",
                )

            mres = self.master.solve(self.oracle)
            log.info(
                "iter=%d master status=%s obj=%s",
                it, mres.status.value, _fmt(mres.objective),
            )
            if mres.status == SolveStatus.INFEASIBLE:
                log.error("Master problem infeasible")
                if any(c.cut_type == CutType.FEASIBILITY for c in self.master.cuts):
                    msg = "master problem infeasible after feasibility cuts: no first-stage point admits recourse"
                else:
                    msg = "master problem infeasible: the original model has no feasible first-stage point"
                return _finish(TerminationStatus.INFEASIBLE, it, msg)
            if mres.status == SolveStatus.UNBOUNDED:
                names = self.master.unbounded_variables()
                msg = (
                    "master problem unbounded; variables without a lower bound: "
                    + (", ".join(names) if names else "none (check the objective)")
                )
                log.error(msg)
                return _finish(TerminationStatus.UNBOUNDED, it, msg)
            if mres.status != SolveStatus.OPTIMAL or mres.x is None:
                msg = f"master solve ended with status {mres.status.value}" + (f" ({mres.message})" if mres.message else "")
                log.error(msg)
                return _finish(TerminationStatus.ERROR, it, msg)

            master_lb = float(mres.objective if mres.lower_bound is None else mres.lower_bound)
            best_lb = master_lb if best_lb is None else max(best_lb, master_lb)
            x_k = list(mres.x)

            sres = self.subproblem.evaluate(self.subproblem_oracle, x_k, iteration=it)
            if sres.status == SolveStatus.OPTIMAL:
                ub_candidate = inst.first_stage_cost(x_k) + float(sres.objective)
                if best_ub is None or ub_candidate < best_ub:
                    best_ub = ub_candidate
                    best_x = list(x_k)
                    best_y = list(sres.y or [])
                log.info(
                    "iter=%d subproblem obj=%s ub_candidate=%s",
                    it, _fmt(sres.objective), _fmt(ub_candidate),
                )
            elif sres.status == SolveStatus.INFEASIBLE:
                if sres.cut is None:
                    msg = f"subproblem infeasible at x={x_k}: no recourse for this first-stage point"
                    if sres.message:
                        msg += f" ({sres.message})"
                    log.error(msg)
                    return _finish(TerminationStatus.SUBPROBLEM_INFEASIBLE, it, msg)
            elif sres.status == SolveStatus.UNBOUNDED:
                names = self.subproblem.unbounded_variables()
                msg = (
                    f"subproblem unbounded at x={x_k}; recourse variables without a lower bound: "
                    + (", ".join(names) if names else "none (recourse cost has a descent ray)")
                )
                log.error(msg)
                return _finish(TerminationStatus.UNBOUNDED, it, msg)
            else:
                msg = f"subproblem solve ended with status {sres.status.value}" + (f" ({sres.message})" if sres.message else "")
                log.error(msg)
                return _finish(TerminationStatus.ERROR, it, msg)

            gap = relative_gap(best_lb, best_ub, self.cfg.gap_floor)
            log.info("bounds: best_lb=%s best_ub=%s rel_gap=%s", _fmt(best_lb), _fmt(best_ub), _fmt(gap, ".3g"))
            if print_every > 0 and (it % print_every == 0 or it == 1):
                print(f"it={it} LB={_fmt(best_lb)} UB={_fmt(best_ub)} gap={_fmt(gap, '.3g')}")

            if self._converged(best_lb, best_ub, gap, tol):
                history.append(IterationRecord(it, tuple(x_k), sres.objective, best_lb, best_ub, gap))
                log.info("Optimality reached within tolerance after %d iterations", it)
                return _finish(TerminationStatus.OPTIMAL, it)

            cut = sres.cut
            assert cut is not None
            self.master.add_cut(cut)
            _log_cut(it, cut)
            history.append(IterationRecord(it, tuple(x_k), sres.objective, best_lb, best_ub, gap, cut))

        log.warning("Max iterations reached: %d", max_it)
        return _finish(
            TerminationStatus.MAX_ITER, max_it,
            f"no convergence within {max_it} iteration(s); returning the best incumbent found",
        )


__all__ = ["BendersSolver", "BendersRunResult", "relative_gap"]
