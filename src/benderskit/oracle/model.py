from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Optional

SENSES = ("<=", ">=", "==")


@dataclass(slots=True)
class Variable:
    name: str
    lb: Optional[float] = 0.0
    ub: Optional[float] = None
    integer: bool = False


@dataclass(slots=True)
class LinearConstraint:
    """One row: sum(coeffs[var] * var) <sense> rhs."""

    name: str
    coeffs: dict[str, float] = field(default_factory=dict)
    sense: str = "<="  # one of "<=", ">=", "=="
    rhs: float = 0.0

    def activity(self, values: Mapping[str, float]) -> float:
        return sum(float(a) * float(values.get(v, 0.0)) for v, a in self.coeffs.items())

    def is_trivial(self) -> bool:
        return not any(float(a) != 0.0 for a in self.coeffs.values())

    def is_satisfied(self, values: Mapping[str, float], tol: float = 1e-9) -> bool:
        lhs = self.activity(values)
        if self.sense == "<=":
            return lhs <= self.rhs + tol
        if self.sense == ">=":
            return lhs >= self.rhs - tol
        return abs(lhs - self.rhs) <= tol

    def describe(self) -> str:
        terms = [f"{float(a):+g}*{v}" for v, a in self.coeffs.items() if float(a) != 0.0]
        body = " ".join(terms) if terms else "0"
        return f"{body} {self.sense} {float(self.rhs):g}"


@dataclass(slots=True)
class LinearModel:
    """Declarative linear (or mixed-integer) model as plain data.

    Everything an oracle needs is held here: variable declarations with
    bounds and integrality, named rows, and one linear objective. The
    transformation helpers (`with_fixed`, `without_constraints`,
    `with_bounds`, `feasibility_version`) return new models and
    leave the receiver untouched, so a model can be rebuilt and handed to
    any oracle without residual solver state.
    """

    name: str = "model"
    variables: list[Variable] = field(default_factory=list)
    constraints: list[LinearConstraint] = field(default_factory=list)
    objective: dict[str, float] = field(default_factory=dict)
    objective_constant: float = 0.0
    sense: str = "min"

    def __post_init__(self) -> None:
        if self.sense not in ("min", "max"):
            raise ValueError(f"objective sense must be 'min' or 'max', got {self.sense!r}")
        seen: set[str] = set()
        for v in self.variables:
            if v.name in seen:
                raise ValueError(f"duplicate variable name '{v.name}'")
            seen.add(v.name)
        rows: set[str] = set()
        for c in self.constraints:
            self._check_row(c, seen)
            if c.name in rows:
                raise ValueError(f"duplicate constraint name '{c.name}'")
            rows.add(c.name)
        for k in self.objective:
            if k not in seen:
                raise ValueError(f"objective references unknown variable '{k}'")

    @staticmethod
    def _check_row(row: LinearConstraint, names: set[str]) -> None:
        if row.sense not in SENSES:
            raise ValueError(f"constraint '{row.name}': unknown sense {row.sense!r}")
        for k in row.coeffs:
            if k not in names:
                raise ValueError(f"constraint '{row.name}' references unknown variable '{k}'")

    # --- lookups -----------------------------------------------------------

    @property
    def is_mip(self) -> bool:
        return any(v.integer for v in self.variables)

    def variable_names(self) -> list[str]:
        return [v.name for v in self.variables]

    def constraint_names(self) -> list[str]:
        return [c.name for c in self.constraints]

    def variable(self, name: str) -> Variable:
        for v in self.variables:
            if v.name == name:
                return v
        raise KeyError(name)

    def constraint(self, name: str) -> LinearConstraint:
        for c in self.constraints:
            if c.name == name:
                return c
        raise KeyError(name)

    def objective_value(self, values: Mapping[str, float]) -> float:
        return float(self.objective_constant) + sum(
            float(a) * float(values.get(v, 0.0)) for v, a in self.objective.items()
        )

    def unbounded_below(self) -> list[str]:
        """Names of variables without a finite lower bound."""
        return [v.name for v in self.variables if v.lb is None]

    # --- in-place construction ---------------------------------------------

    def add_variable(self, var: Variable) -> Variable:
        if var.name in self.variable_names():
            raise ValueError(f"duplicate variable name '{var.name}'")
        self.variables.append(var)
        return var

    def add_constraint(self, row: LinearConstraint) -> LinearConstraint:
        self._check_row(row, set(self.variable_names()))
        if row.name in self.constraint_names():
            raise ValueError(f"duplicate constraint name '{row.name}'")
        self.constraints.append(row)
        return row

    # --- pure transformations ----------------------------------------------

    def copy(self, name: str | None = None) -> "LinearModel":
        return LinearModel(
            name=self.name if name is None else name,
            variables=[replace(v) for v in self.variables],
            constraints=[replace(c, coeffs=dict(c.coeffs)) for c in self.constraints],
            objective=dict(self.objective),
            objective_constant=self.objective_constant,
            sense=self.sense,
        )

    def with_fixed(self, values: Mapping[str, float], prefix: str = "fix") -> "LinearModel":
        """Pin variables with equality rows named `prefix[var]`.

        Rows from an earlier fixing with the same prefix are dropped first,
        so repeated fixing never accumulates constraints.
        """
        out = self.copy()
        tag = f"{prefix}["
        out.constraints = [c for c in out.constraints if not c.name.startswith(tag)]
        for var, val in values.items():
            out.add_constraint(LinearConstraint(f"{prefix}[{var}]", {var: 1.0}, "==", float(val)))
        return out

    def without_constraints(self, names: Iterable[str]) -> "LinearModel":
        drop = set(names)
        out = self.copy()
        out.constraints = [c for c in out.constraints if c.name not in drop]
        return out

    def with_bounds(self, name: str, lb: Any = ..., ub: Any = ...) -> "LinearModel":
        """Return a copy with new bounds for `name`; `...` keeps the current one."""
        out = self.copy()
        var = out.variable(name)
        if lb is not ...:
            var.lb = lb
        if ub is not ...:
            var.ub = ub
        return out

    def feasibility_version(self) -> "LinearModel":
        out = self.copy(name=f"{self.name}_feas")
        out.objective = {}
        out.objective_constant = 0.0
        out.sense = "min"
        return out

    # --- (de)serialization ---------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LinearModel":
        """Build a model from a YAML-style mapping.

        Example::

            name: bounds_conflict
            sense: min
            variables:
              - {name: x, lb: 0, ub: 8}
            constraints:
              - {name: force, coeffs: {x: 1}, sense: ">=", rhs: 10}
            objective: {x: 1}
        """
        variables = []
        for raw in data.get("variables") or []:
            variables.append(
                Variable(
                    name=str(raw["name"]),
                    lb=_opt_float(raw.get("lb", 0.0)),
                    ub=_opt_float(raw.get("ub")),
                    integer=bool(raw.get("integer", False)),
                )
            )
        constraints = []
        for raw in data.get("constraints") or []:
            constraints.append(
                LinearConstraint(
                    name=str(raw["name"]),
                    coeffs={str(k): float(v) for k, v in (raw.get("coeffs") or {}).items()},
                    sense=str(raw.get("sense", "<=")),
                    rhs=float(raw.get("rhs", 0.0)),
                )
            )
        return cls(
            name=str(data.get("name", "model")),
            variables=variables,
            constraints=constraints,
            objective={str(k): float(v) for k, v in (data.get("objective") or {}).items()},
            objective_constant=float(data.get("objective_constant", 0.0)),
            sense=str(data.get("sense", "min")),
        )


def _opt_float(x: Any) -> Optional[float]:
    if x is None:
        return None
    if isinstance(x, str) and x.strip().lower() in ("none", "null", "inf", "-inf", ""):
        return None
    val = float(x)
    if math.isinf(val):
        return None
    return val


__all__ = ["SENSES", "Variable", "LinearConstraint", "LinearModel"]
