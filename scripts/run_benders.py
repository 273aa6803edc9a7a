#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure `src/` is on sys.path for direct script execution
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from benderskit.config import load_config
from benderskit.logging_config import setup_logging
from benderskit.oracle.base import SolveStatus
from benderskit.runner import build_solver, solve_monolithic


def compare_theta_bounds(config: Path, bounds: list[float]) -> int:
    """Run the loop once per initial theta bound and check all runs agree with the combined model."""
    cfg = load_config(config)
    setup_logging(cfg.run.log_level)
    mono = solve_monolithic(cfg)
    if mono.status != SolveStatus.OPTIMAL:
        print(f"monolithic status={mono.status.value}; nothing to compare against")
        return 1
    print(f"monolithic objective={mono.objective:.6g}")

    ok = True
    for lb in bounds:
        cfg.run.theta_lower_bound = lb
        res = build_solver(cfg).run()
        match = res.objective is not None and abs(res.objective - mono.objective) <= 1e-6 * max(1.0, abs(mono.objective))
        ok = ok and res.converged and match
        print(
            f"theta_lb={lb:g} status={res.status.value} iterations={res.iterations} "
            f"objective={res.objective if res.objective is None else f'{res.objective:.6g}'} match={match}"
        )
    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--config", type=Path, default=Path("configs/default.yaml"))
    p.add_argument(
        "--theta-lb",
        dest="theta_lb",
        type=str,
        default="-1000,-100000",
        help="Comma-separated initial theta lower bounds to compare",
    )
    args = p.parse_args(argv)
    bounds = [float(v) for v in args.theta_lb.split(",") if v.strip()]
    return compare_theta_bounds(args.config, bounds)


if __name__ == "__main__":
    raise SystemExit(main())
