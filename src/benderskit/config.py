from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .oracle.model import LinearModel
from .problem.instance import BendersInstance, worked_example


@dataclass(slots=True)
class RunConfig:
    max_iterations: int = 100
    tolerance: float = 1e-6
    # absolute UB - LB fallback used when |UB| < gap_floor (None disables)
    abs_tolerance: Optional[float] = 1e-6
    gap_floor: float = 1e-9
    time_limit_s: float = 600
    # None leaves theta free (the first master solve is then unbounded)
    theta_lower_bound: Optional[float] = -1e3
    feasibility_cuts: bool = True
    log_level: str = "INFO"
    # Print iteration summary every N iters (0 = never)
    print_every: int = 0


DEFAULT_SOLVER = "appsi_highs"
DEFAULT_NLP_SOLVER = "ipopt"


@dataclass(slots=True)
class SolverConfig:
    master: str = DEFAULT_SOLVER
    subproblem: str = DEFAULT_SOLVER
    nlp: str = DEFAULT_NLP_SOLVER
    executable: Optional[str] = None
    # relative MIP gap for the master; None means run.tolerance
    mip_gap: Optional[float] = None
    options: dict[str, Any] = field(default_factory=dict)
    tee: bool = False


@dataclass(slots=True)
class BendersConfig:
    run: RunConfig = field(default_factory=RunConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    problem: BendersInstance = field(default_factory=worked_example)
    iis_model: Optional[LinearModel] = None


def _as_dict(m: Mapping[str, Any] | None) -> dict[str, Any]:
    return dict(m) if m else {}


def _opt_float(x: Any) -> Optional[float]:
    if x is None:
        return None
    if isinstance(x, str) and x.strip().lower() in ("none", "null", ""):
        return None
    return float(x)


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("Top-level YAML document must be a mapping")
        return data


def parse_config(raw: Mapping[str, Any]) -> BendersConfig:
    """Build a `BendersConfig` from an already-parsed mapping; unknown keys are ignored."""
    run = _as_dict(raw.get("run"))
    solver = _as_dict(raw.get("solver"))
    problem = raw.get("problem")
    iis = raw.get("iis")

    defaults = RunConfig()
    run_cfg = RunConfig(
        max_iterations=int(run.get("max_iterations", defaults.max_iterations)),
        tolerance=float(run.get("tolerance", defaults.tolerance)),
        abs_tolerance=_opt_float(run.get("abs_tolerance", defaults.abs_tolerance)),
        gap_floor=float(run.get("gap_floor", defaults.gap_floor)),
        time_limit_s=float(run.get("time_limit_s", defaults.time_limit_s)),
        theta_lower_bound=_opt_float(run.get("theta_lower_bound", defaults.theta_lower_bound)),
        feasibility_cuts=bool(run.get("feasibility_cuts", defaults.feasibility_cuts)),
        log_level=str(run.get("log_level", defaults.log_level)),
        print_every=int(run.get("print_every", defaults.print_every) or 0),
    )

    # A single `name` applies to both master and subproblem unless overridden
    default_name = str(solver.get("name", DEFAULT_SOLVER))
    solver_cfg = SolverConfig(
        master=str(solver.get("master", default_name)),
        subproblem=str(solver.get("subproblem", default_name)),
        nlp=str(solver.get("nlp", DEFAULT_NLP_SOLVER)),
        executable=solver.get("executable"),
        mip_gap=_opt_float(solver.get("mip_gap")),
        options=_as_dict(solver.get("options")),
        tee=bool(solver.get("tee", False)),
    )

    instance = BendersInstance.from_mapping(problem) if problem else worked_example()
    iis_model = LinearModel.from_mapping(iis) if iis else None
    return BendersConfig(run=run_cfg, solver=solver_cfg, problem=instance, iis_model=iis_model)


def load_config(path: str | Path | None) -> BendersConfig:
    """Load configuration from a YAML file or return defaults.

    The schema is minimal and forgiving; unknown keys are ignored. Only YAML is supported.
    """
    if path is None:
        return BendersConfig()
    p = Path(path)
    if not p.exists():
        # Return defaults but allow the CLI to keep going
        return BendersConfig()

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(f"Unsupported config format '{p.suffix}'. Please provide a YAML file.")
    return parse_config(_load_yaml(p))


__all__ = ["DEFAULT_SOLVER", "DEFAULT_NLP_SOLVER", "RunConfig", "SolverConfig", "BendersConfig", "parse_config", "load_config"]
