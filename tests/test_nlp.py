import pytest

from benderskit.nlp import minimize_unconstrained, rosenbrock
from benderskit.oracle.base import SolveStatus


def test_rosenbrock_values():
    assert rosenbrock([1.0, 1.0]) == 0.0
    assert rosenbrock([-1.2, 1.0]) == pytest.approx(24.2)
    assert rosenbrock([1.0, 1.0, 1.0, 1.0]) == 0.0
    with pytest.raises(ValueError):
        rosenbrock([1.0])


def test_empty_start_rejected():
    with pytest.raises(ValueError):
        minimize_unconstrained(rosenbrock, [])


def test_rosenbrock_minimum(nlp_solver):
    res = minimize_unconstrained(rosenbrock, [-1.2, 1.0], solver=nlp_solver)
    assert res.status == SolveStatus.OPTIMAL
    assert res.x == pytest.approx([1.0, 1.0], abs=1e-5)
    assert res.objective == pytest.approx(0.0, abs=1e-8)


def test_rosenbrock_higher_dimension(nlp_solver):
    res = minimize_unconstrained(rosenbrock, [0.8, 0.8, 0.8, 0.8], solver=nlp_solver)
    assert res.status == SolveStatus.OPTIMAL
    assert res.x == pytest.approx([1.0] * 4, abs=1e-4)
