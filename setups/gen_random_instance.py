#!/usr/bin/env python3
"""
Generate a random two-stage instance for the Benders loop.

Inputs:
  - n: number of integer first-stage variables
  - m: number of continuous recourse variables (a penalised slack column is added)
  - r: number of coupling rows A.x + E.y <= e

The instance has complete recourse, so every first-stage point admits a
subproblem solution. Output is a config YAML with a `problem` section:

Examples:
  python setups/gen_random_instance.py -n 3 -m 4 -r 5 --seed 7
  python setups/gen_random_instance.py -n 2 -m 2 -r 3 -o configs/random_small.yaml
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from benderskit.problem.instance import random_instance


def write_output(path: Path, data: dict) -> None:
    path = path.with_suffix(".yaml")
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    print(f"Wrote instance to: {path}")


def default_out_path(n: int, m: int, r: int, seed: int | None) -> Path:
    tag = f"_s{seed}" if seed is not None else ""
    return Path(f"setups/random_n{n}_m{m}_r{r}{tag}.yaml")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate a random two-stage MILP instance")
    p.add_argument("-n", "--first-stage", dest="n", type=int, required=True, help="Integer variables (n >= 1)")
    p.add_argument("-m", "--recourse", dest="m", type=int, required=True, help="Recourse variables (m >= 1)")
    p.add_argument("-r", "--rows", dest="r", type=int, required=True, help="Coupling rows (r >= 1)")
    p.add_argument("--x-cap", dest="x_cap", type=int, default=5, help="Upper bound on each x component")
    p.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    p.add_argument("-o", "--output", type=Path, default=None, help="Output YAML path. Default auto-named under setups/")
    return p.parse_args()


def main() -> int:
    args = parse_args()
    if args.n < 1 or args.m < 1 or args.r < 1:
        raise SystemExit("n, m and r must all be >= 1")
    inst = random_instance(args.n, args.m, args.r, seed=args.seed, x_cap=args.x_cap)
    data = {"run": {"theta_lower_bound": 0}, "problem": inst.as_mapping()}
    out_path = args.output if args.output is not None else default_out_path(args.n, args.m, args.r, args.seed)
    write_output(out_path, data)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
