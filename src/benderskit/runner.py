from __future__ import annotations

from pathlib import Path

from .benders.master import MasterProblem
from .benders.solver import BendersRunResult, BendersSolver
from .benders.subproblem import Subproblem
from .config import BendersConfig, load_config
from .logging_config import setup_logging
from .oracle.base import OracleResult
from .oracle.pyomo_oracle import PyomoOracle
from .problem.instance import BendersInstance


def _default_config_path() -> Path:
    """Best-effort discovery of the default YAML config.

    Tries these, in order:
    1) CWD `configs/default.yaml`
    2) Repo root relative to this file
    Falls back to `configs/default.yaml` in CWD regardless.
    """
    cwd_path = Path("configs/default.yaml")
    if cwd_path.exists():
        return cwd_path
    here = Path(__file__).resolve()
    repo_path = here.parents[2] / "configs" / "default.yaml"
    if repo_path.exists():
        return repo_path
    return cwd_path


def make_oracles(cfg: BendersConfig) -> tuple[PyomoOracle, PyomoOracle]:
    """Master and subproblem oracles; one object when both use the same solver."""
    s = cfg.solver
    # the master gap must not be looser than the loop tolerance
    gap = s.mip_gap if s.mip_gap is not None else cfg.run.tolerance
    master = PyomoOracle(s.master, options=s.options, tee=s.tee, executable=s.executable, mip_gap=gap)
    if s.subproblem == s.master:
        return master, master
    sub = PyomoOracle(s.subproblem, options=s.options, tee=s.tee, executable=s.executable)
    return master, sub


def build_solver(cfg: BendersConfig, instance: BendersInstance | None = None) -> BendersSolver:
    inst = instance or cfg.problem
    master_oracle, sub_oracle = make_oracles(cfg)
    master = MasterProblem(inst, theta_lower_bound=cfg.run.theta_lower_bound)
    sub = Subproblem(inst, feasibility_cuts=cfg.run.feasibility_cuts)
    return BendersSolver(master, sub, master_oracle, cfg.run, subproblem_oracle=sub_oracle)


def solve_monolithic(cfg: BendersConfig, instance: BendersInstance | None = None) -> OracleResult:
    """One-shot solve of the combined model, the ground truth for the loop."""
    inst = instance or cfg.problem
    oracle, _ = make_oracles(cfg)
    return oracle.solve(inst.monolithic_model())


def run(
    config_path: str | Path | None = None,
    max_iterations: int | None = None,
    tolerance: float | None = None,
) -> BendersRunResult:
    """Run the Benders loop with options read from YAML.

    Parameters are taken from `configs/default.yaml` by default; explicit
    `max_iterations` / `tolerance` override the `run` section.
    """
    cfg_path = Path(config_path) if config_path is not None else _default_config_path()
    cfg = load_config(cfg_path)
    setup_logging(cfg.run.log_level)
    solver = build_solver(cfg)
    return solver.run(max_iterations=max_iterations, tolerance=tolerance)


__all__ = ["run", "build_solver", "make_oracles", "solve_monolithic"]
