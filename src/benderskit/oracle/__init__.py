from .model import LinearConstraint, LinearModel, Variable
from .base import LinearOracle, OracleResult, SolveStatus
from .pyomo_oracle import PyomoOracle

__all__ = [
    "Variable",
    "LinearConstraint",
    "LinearModel",
    "SolveStatus",
    "OracleResult",
    "LinearOracle",
    "PyomoOracle",
]
