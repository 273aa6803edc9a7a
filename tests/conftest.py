from __future__ import annotations

import pyomo.environ as pyo
import pytest

from benderskit.config import DEFAULT_NLP_SOLVER, DEFAULT_SOLVER


def _available(name: str) -> bool:
    try:
        return bool(pyo.SolverFactory(name).available(exception_flag=False))
    except Exception:
        return False


@pytest.fixture(scope="session")
def oracle():
    """LP/MIP oracle on the default solver; tests using it skip when it is missing."""
    if not _available(DEFAULT_SOLVER):
        pytest.skip(f"solver '{DEFAULT_SOLVER}' not available")
    from benderskit.oracle.pyomo_oracle import PyomoOracle

    return PyomoOracle(DEFAULT_SOLVER)


@pytest.fixture(scope="session")
def nlp_solver() -> str:
    if not _available(DEFAULT_NLP_SOLVER):
        pytest.skip(f"solver '{DEFAULT_NLP_SOLVER}' not available")
    return DEFAULT_NLP_SOLVER
