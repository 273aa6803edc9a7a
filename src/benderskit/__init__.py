"""benderskit

A small, solver-agnostic toolkit around LP/MIP oracles. The package provides:

- Plain-data linear models and a pyomo-backed oracle (`benderskit.oracle`)
- A Benders loop controller with optimality and feasibility cuts (`benderskit.benders`)
- IIS extraction for infeasible models (`benderskit.diagnostics`)
- An unconstrained nonlinear solve through pyomo (`benderskit.nlp`)
- A small CLI and YAML-based configuration
"""

from .runner import run

__all__ = [
    "__version__",
    "run",
]

__version__ = "0.1.0"
