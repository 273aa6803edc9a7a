import pytest

from benderskit.oracle.base import SolveStatus
from benderskit.oracle.model import LinearConstraint, LinearModel, Variable


def _one_var(lb=0.0, rows=(), objective=None) -> LinearModel:
    return LinearModel(
        name="one_var",
        variables=[Variable("x", lb=lb)],
        constraints=list(rows),
        objective={"x": 1.0} if objective is None else objective,
    )


def test_lp_primal_and_dual(oracle):
    res = oracle.solve(_one_var(rows=[LinearConstraint("floor", {"x": 1.0}, ">=", 3.0)]))
    assert res.is_optimal
    assert res.objective == pytest.approx(3.0)
    assert res.primal["x"] == pytest.approx(3.0)
    # raising the floor by one raises the optimum by one
    assert res.duals["floor"] == pytest.approx(1.0)


def test_mip_has_no_duals(oracle):
    model = LinearModel(
        name="mip",
        variables=[Variable("k", lb=0.0, integer=True)],
        constraints=[LinearConstraint("half", {"k": 2.0}, ">=", 3.0)],
        objective={"k": 1.0},
    )
    res = oracle.solve(model)
    assert res.is_optimal
    assert res.primal["k"] == pytest.approx(2.0)
    assert res.duals == {}


def test_infeasible_and_unbounded(oracle):
    infeasible = _one_var(rows=[LinearConstraint("neg", {"x": 1.0}, "<=", -1.0)])
    assert oracle.solve(infeasible).status == SolveStatus.INFEASIBLE

    unbounded = _one_var(lb=None)
    assert oracle.solve(unbounded).status == SolveStatus.UNBOUNDED


def test_constant_rows(oracle):
    violated = _one_var(rows=[LinearConstraint("impossible", {"x": 0.0}, ">=", 1.0)])
    res = oracle.solve(violated)
    assert res.status == SolveStatus.INFEASIBLE
    assert "impossible" in res.message

    harmless = _one_var(rows=[LinearConstraint("always", {}, "<=", 1.0)])
    res = oracle.solve(harmless)
    assert res.is_optimal
    assert res.duals["always"] == 0.0


def test_unused_variable_rests_at_bound(oracle):
    model = LinearModel(name="idle", variables=[Variable("x"), Variable("w", lb=2.0, ub=5.0)], objective={"x": 1.0})
    res = oracle.solve(model)
    assert res.is_optimal
    assert res.primal["w"] == pytest.approx(2.0)


def test_rowless_model_is_decided_without_rows(oracle):
    model = LinearModel(name="rowless", variables=[Variable("x", lb=0.0, ub=8.0)])
    res = oracle.solve(model)
    assert res.is_optimal
    assert res.primal == {"x": 0.0}
    assert res.objective == 0.0

    crossed = model.with_bounds("x", lb=10.0)
    assert oracle.solve(crossed).status == SolveStatus.INFEASIBLE


def test_master_gap_follows_tolerance():
    from benderskit.config import BendersConfig
    from benderskit.runner import make_oracles

    cfg = BendersConfig()
    cfg.run.tolerance = 1e-7
    try:
        master, _ = make_oracles(cfg)
    except RuntimeError:
        pytest.skip("default solver not available")
    assert master._solver.options["mip_rel_gap"] == pytest.approx(1e-7)


def test_mip_bound_never_exceeds_objective(oracle):
    model = LinearModel(
        name="round_up",
        variables=[Variable("k", lb=0.0, ub=10.0, integer=True)],
        constraints=[LinearConstraint("floor", {"k": 1.0}, ">=", 2.5)],
        objective={"k": 1.0},
    )
    res = oracle.solve(model)
    assert res.is_optimal
    assert res.objective == pytest.approx(3.0)
    assert res.bound is None or res.bound <= res.objective + 1e-9
