from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from ..oracle.model import LinearConstraint, LinearModel, Variable


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise ValueError(f"dimension mismatch in dot product: {len(a)} vs {len(b)}")
    return sum(float(u) * float(v) for u, v in zip(a, b))


def x_name(j: int) -> str:
    return f"x[{j}]"


def y_name(j: int) -> str:
    return f"y[{j}]"


def z_name(j: int) -> str:
    return f"z[{j}]"


@dataclass(slots=True)
class BendersInstance:
    """Two-stage MILP

        min  f.x + c.y
        s.t. A.x + E.y <= e,   x >= 0 integer,   y >= 0

    `x_upper` optionally caps each first-stage component (None = no cap).
    """

    f: list[float]
    c: list[float]
    A: list[list[float]]
    E: list[list[float]]
    e: list[float]
    x_upper: Optional[list[Optional[float]]] = None
    x_integer: bool = True
    name: str = "benders"
    meta: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.f = [float(v) for v in self.f]
        self.c = [float(v) for v in self.c]
        self.e = [float(v) for v in self.e]
        self.A = [[float(v) for v in row] for row in self.A]
        self.E = [[float(v) for v in row] for row in self.E]
        n, m, r = len(self.f), len(self.c), len(self.e)
        if n == 0:
            raise ValueError("first-stage cost vector f is empty")
        if len(self.A) != r or len(self.E) != r:
            raise ValueError(f"A has {len(self.A)} rows and E has {len(self.E)} rows; e has {r}")
        for i, row in enumerate(self.A):
            if len(row) != n:
                raise ValueError(f"A row {i} has {len(row)} entries, expected {n}")
        for i, row in enumerate(self.E):
            if len(row) != m:
                raise ValueError(f"E row {i} has {len(row)} entries, expected {m}")
        if self.x_upper is not None:
            if len(self.x_upper) != n:
                raise ValueError(f"x_upper has {len(self.x_upper)} entries, expected {n}")
            self.x_upper = [None if u is None else float(u) for u in self.x_upper]

    @property
    def n(self) -> int:
        return len(self.f)

    @property
    def m(self) -> int:
        return len(self.c)

    @property
    def rows(self) -> int:
        return len(self.e)

    def x_bound(self, j: int) -> Optional[float]:
        return None if self.x_upper is None else self.x_upper[j]

    def first_stage_cost(self, x: Sequence[float]) -> float:
        return _dot(self.f, x)

    def recourse_cost(self, y: Sequence[float]) -> float:
        return _dot(self.c, y)

    def total_cost(self, x: Sequence[float], y: Sequence[float]) -> float:
        return self.first_stage_cost(x) + self.recourse_cost(y)

    def row_activity(self, x: Sequence[float], y: Sequence[float]) -> list[float]:
        return [_dot(self.A[i], x) + _dot(self.E[i], y) for i in range(self.rows)]

    def is_feasible(self, x: Sequence[float], y: Sequence[float], tol: float = 1e-6) -> bool:
        """Check A.x + E.y <= e, x, y >= 0 and the caps on x."""
        if any(v < -tol for v in x) or any(v < -tol for v in y):
            return False
        for j, v in enumerate(x):
            ub = self.x_bound(j)
            if ub is not None and v > ub + tol:
                return False
        return all(a <= b + tol for a, b in zip(self.row_activity(x, y), self.e))

    def monolithic_model(self) -> LinearModel:
        """The combined first- and second-stage model, solved in one shot."""
        lm = LinearModel(name=f"{self.name}_monolithic")
        for j in range(self.n):
            lm.add_variable(Variable(x_name(j), lb=0.0, ub=self.x_bound(j), integer=self.x_integer))
        for j in range(self.m):
            lm.add_variable(Variable(y_name(j), lb=0.0))
        for i in range(self.rows):
            coeffs = {x_name(j): self.A[i][j] for j in range(self.n)}
            coeffs.update({y_name(j): self.E[i][j] for j in range(self.m)})
            lm.add_constraint(LinearConstraint(f"row[{i}]", coeffs, "<=", self.e[i]))
        lm.objective = {x_name(j): self.f[j] for j in range(self.n)}
        lm.objective.update({y_name(j): self.c[j] for j in range(self.m)})
        return lm

    def split_solution(self, primal: Mapping[str, float]) -> tuple[list[float], list[float]]:
        x = [float(primal.get(x_name(j), 0.0)) for j in range(self.n)]
        y = [float(primal.get(y_name(j), 0.0)) for j in range(self.m)]
        return x, y

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BendersInstance":
        missing = [k for k in ("f", "c", "A", "E", "e") if k not in data]
        if missing:
            raise ValueError(f"problem definition lacks key(s): {', '.join(missing)}")
        return cls(
            f=list(data["f"]),
            c=list(data["c"]),
            A=[list(r) for r in data["A"]],
            E=[list(r) for r in data["E"]],
            e=list(data["e"]),
            x_upper=list(data["x_upper"]) if data.get("x_upper") is not None else None,
            x_integer=bool(data.get("x_integer", True)),
            name=str(data.get("name", "benders")),
        )

    def as_mapping(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "f": list(self.f),
            "c": list(self.c),
            "A": [list(r) for r in self.A],
            "E": [list(r) for r in self.E],
            "e": list(self.e),
        }
        if self.x_upper is not None:
            out["x_upper"] = list(self.x_upper)
        if not self.x_integer:
            out["x_integer"] = False
        return out


def worked_example() -> BendersInstance:
    return BendersInstance(
        f=[1, 4],
        c=[2, 3],
        A=[[1, -3], [-1, -3]],
        E=[[1, -2], [-1, -1]],
        e=[-2, -3],
        name="worked_example",
    )


def random_instance(
    n: int,
    m: int,
    rows: int,
    seed: int | None = None,
    x_cap: int = 5,
    penalty: float | None = None,
) -> BendersInstance:
    """Random instance with complete recourse.

    The last recourse column is a penalised slack (-1 in every row), so the
    subproblem is feasible for every x; its cost defaults to ten times the
    largest other cost entry.
    """
    if n < 1 or m < 1 or rows < 1:
        raise ValueError("n, m and rows must all be >= 1")
    rng = random.Random(seed)
    f = [float(rng.randint(1, 6)) for _ in range(n)]
    c = [float(rng.randint(1, 6)) for _ in range(m)]
    A = [[float(rng.randint(-3, 3)) for _ in range(n)] for _ in range(rows)]
    E = [[float(rng.randint(-3, 3)) for _ in range(m)] for _ in range(rows)]
    e = [float(rng.randint(-6, 4)) for _ in range(rows)]
    pen = float(penalty) if penalty is not None else 10.0 * max(f + c)
    c.append(pen)
    for row in E:
        row.append(-1.0)
    return BendersInstance(
        f=f, c=c, A=A, E=E, e=e,
        x_upper=[float(x_cap)] * n,
        name=f"random_n{n}_m{m}_r{rows}" + (f"_s{seed}" if seed is not None else ""),
    )


__all__ = ["BendersInstance", "worked_example", "random_instance", "x_name", "y_name", "z_name"]
