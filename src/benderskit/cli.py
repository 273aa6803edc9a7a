import argparse
import sys
from pathlib import Path

# Allow running as a standalone script (python path/to/cli.py)
if __package__ in (None, ""):
    THIS_FILE = Path(__file__).resolve()
    SRC_ROOT = THIS_FILE.parents[1]
    if str(SRC_ROOT) not in sys.path:
        sys.path.insert(0, str(SRC_ROOT))
    from benderskit.config import load_config  # type: ignore
    from benderskit.logging_config import setup_logging  # type: ignore
    from benderskit.nlp import minimize_unconstrained, rosenbrock  # type: ignore
    from benderskit.oracle.base import SolveStatus  # type: ignore
    from benderskit.oracle.model import LinearModel  # type: ignore
    from benderskit.oracle.pyomo_oracle import PyomoOracle  # type: ignore
    from benderskit.runner import build_solver, solve_monolithic  # type: ignore
else:
    from .config import load_config
    from .logging_config import setup_logging
    from .nlp import minimize_unconstrained, rosenbrock
    from .oracle.base import SolveStatus
    from .oracle.model import LinearModel
    from .oracle.pyomo_oracle import PyomoOracle
    from .runner import build_solver, solve_monolithic

import yaml


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="benderskit",
        description="Benders decomposition, infeasibility diagnosis and NLP demos on pyomo solvers",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=Path("configs/default.yaml"),
        help="Path to YAML config. Default: configs/default.yaml",
    )
    sub = p.add_subparsers(dest="cmd")
    sub.required = False

    run_p = sub.add_parser("run", help="Run the Benders loop on the configured problem")
    run_p.add_argument("--max-iterations", dest="max_iterations", type=int, default=None)
    run_p.add_argument("--tolerance", type=float, default=None, help="Relative gap tolerance")
    run_p.add_argument(
        "--theta-lb",
        dest="theta_lb",
        type=float,
        default=None,
        help="Initial lower bound on theta (overrides run.theta_lower_bound)",
    )
    run_p.add_argument(
        "--check",
        action="store_true",
        help="Cross-check the result against a one-shot solve of the combined model",
    )

    sub.add_parser("monolithic", help="Solve the combined model in one shot")

    iis_p = sub.add_parser("iis", help="Solve a model and explain infeasibility with an IIS")
    iis_p.add_argument(
        "--model",
        type=Path,
        default=None,
        help="YAML file with a model definition (default: the 'iis' section of --config)",
    )

    nlp_p = sub.add_parser("nlp", help="Minimize the Rosenbrock function with a nonlinear solver")
    nlp_p.add_argument("--x0", type=str, default="-1.2,1.0", help="Comma-separated start point")

    sub.add_parser("info", help="Show current configuration")
    return p


def _print_cfg(cfg) -> None:
    r, s, inst = cfg.run, cfg.solver, cfg.problem
    print("Run configuration:")
    print(
        f"  run: iterations={r.max_iterations} tol={r.tolerance} abs_tol={r.abs_tolerance} "
        f"time_limit_s={r.time_limit_s} theta_lb={r.theta_lower_bound} feasibility_cuts={r.feasibility_cuts}"
    )
    gap = s.mip_gap if s.mip_gap is not None else r.tolerance
    print(f"  solver: master={s.master} subproblem={s.subproblem} nlp={s.nlp} mip_gap={gap}")
    print(f"  problem: {inst.name} n={inst.n} m={inst.m} rows={inst.rows}")


def cmd_run(args) -> int:
    cfg = load_config(args.config)
    setup_logging(cfg.run.log_level)
    if getattr(args, "theta_lb", None) is not None:
        cfg.run.theta_lower_bound = float(args.theta_lb)
    _print_cfg(cfg)

    solver = build_solver(cfg)
    result = solver.run(max_iterations=args.max_iterations, tolerance=args.tolerance)
    print()
    print(result.format_summary())
    print(f"Total solve time: {result.elapsed_s:.3f} seconds")

    if getattr(args, "check", False):
        mono = solve_monolithic(cfg)
        if mono.status != SolveStatus.OPTIMAL:
            print(f"Monolithic check: status={mono.status.value}")
        else:
            same = result.objective is not None and abs(mono.objective - result.objective) <= 1e-6 * max(
                1.0, abs(mono.objective)
            )
            print(f"Monolithic check: objective={mono.objective:.6g} match={'yes' if same else 'NO'}")
    return 0 if result.converged else 1


def cmd_monolithic(args) -> int:
    cfg = load_config(args.config)
    setup_logging(cfg.run.log_level)
    res = solve_monolithic(cfg)
    print(f"status={res.status.value}")
    if res.status != SolveStatus.OPTIMAL:
        return 1
    x, y = cfg.problem.split_solution(res.primal)
    print(f"objective={res.objective:.6g}")
    print("x = [" + ", ".join(f"{v:g}" for v in x) + "]")
    print("y = [" + ", ".join(f"{v:.6g}" for v in y) + "]")
    return 0


def _load_iis_model(args, cfg) -> LinearModel | None:
    if args.model is None:
        return cfg.iis_model
    with Path(args.model).open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Top-level YAML document must be a mapping")
    return LinearModel.from_mapping(data.get("iis", data))


def cmd_iis(args) -> int:
    cfg = load_config(args.config)
    setup_logging(cfg.run.log_level)
    model = _load_iis_model(args, cfg)
    if model is None:
        print("No model to diagnose: pass --model or add an 'iis' section to the config.")
        return 2
    oracle = PyomoOracle(cfg.solver.master, options=cfg.solver.options, tee=cfg.solver.tee,
                         executable=cfg.solver.executable)
    res = oracle.solve(model)
    print(f"Model '{model.name}': status={res.status.value}")
    if res.status != SolveStatus.INFEASIBLE:
        if res.status == SolveStatus.OPTIMAL:
            print(f"objective={res.objective:.6g}")
        return 0
    conflict = oracle.compute_iis(model)
    print(conflict.format())
    return 0


def cmd_nlp(args) -> int:
    cfg = load_config(args.config)
    setup_logging(cfg.run.log_level)
    x0 = [float(v) for v in str(args.x0).split(",") if v.strip()]
    res = minimize_unconstrained(rosenbrock, x0, solver=cfg.solver.nlp, tee=cfg.solver.tee)
    print(f"status={res.status.value}")
    if res.status != SolveStatus.OPTIMAL:
        return 1
    print(f"objective={res.objective:.6g}")
    print("x = [" + ", ".join(f"{v:.6g}" for v in res.x) + "]")
    return 0


def cmd_info(args) -> int:
    cfg = load_config(args.config)
    _print_cfg(cfg)
    print(cfg)
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.cmd is None:
        args.max_iterations = None
        args.tolerance = None
        args.theta_lb = None
        args.check = False
        return cmd_run(args)
    handlers = {
        "run": cmd_run,
        "monolithic": cmd_monolithic,
        "iis": cmd_iis,
        "nlp": cmd_nlp,
        "info": cmd_info,
    }
    handler = handlers.get(args.cmd)
    if handler is None:
        parser.print_help()
        return 2
    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
