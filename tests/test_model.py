import pytest

from benderskit.oracle.model import LinearConstraint, LinearModel, Variable


def _small_model() -> LinearModel:
    return LinearModel(
        name="small",
        variables=[Variable("x", lb=0.0, ub=8.0), Variable("y", lb=0.0), Variable("z", lb=None)],
        constraints=[
            LinearConstraint("cap", {"x": 1.0, "y": 1.0}, "<=", 20.0),
            LinearConstraint("link", {"x": 1.0, "z": -1.0}, "==", 0.0),
        ],
        objective={"x": 1.0, "y": 2.0},
    )


def test_duplicate_and_unknown_names_rejected():
    with pytest.raises(ValueError, match="duplicate variable"):
        LinearModel(variables=[Variable("x"), Variable("x")])
    with pytest.raises(ValueError, match="unknown variable"):
        LinearModel(variables=[Variable("x")], constraints=[LinearConstraint("r", {"w": 1.0})])
    with pytest.raises(ValueError, match="unknown sense"):
        LinearModel(variables=[Variable("x")], constraints=[LinearConstraint("r", {"x": 1.0}, "<")])
    with pytest.raises(ValueError, match="objective references"):
        LinearModel(variables=[Variable("x")], objective={"q": 1.0})

    m = _small_model()
    with pytest.raises(ValueError, match="duplicate constraint"):
        m.add_constraint(LinearConstraint("cap", {"x": 1.0}, "<=", 1.0))


def test_with_fixed_is_idempotent_and_pure():
    m = _small_model()
    once = m.with_fixed({"x": 3.0})
    twice = once.with_fixed({"x": 5.0})

    assert m.constraint_names() == ["cap", "link"]
    assert once.constraint_names() == ["cap", "link", "fix[x]"]
    # Re-fixing replaces the earlier row instead of stacking a second one
    assert twice.constraint_names() == ["cap", "link", "fix[x]"]
    assert twice.constraint("fix[x]").rhs == 5.0
    assert twice.constraint("fix[x]").sense == "=="


def test_transformations_leave_source_untouched():
    m = _small_model()
    dropped = m.without_constraints(["cap"])
    loose = m.with_bounds("x", ub=None)
    kept = m.with_bounds("x", lb=2.0)
    feas = m.feasibility_version()

    assert dropped.constraint_names() == ["link"]
    assert loose.variable("x").ub is None and loose.variable("x").lb == 0.0
    assert kept.variable("x").lb == 2.0 and kept.variable("x").ub == 8.0
    assert feas.objective == {} and feas.name == "small_feas"

    assert m.constraint_names() == ["cap", "link"]
    assert m.variable("x").ub == 8.0
    assert m.objective == {"x": 1.0, "y": 2.0}


def test_row_helpers():
    row = LinearConstraint("force", {"x": 1.0}, ">=", 10.0)
    assert row.describe() == "+1*x >= 10"
    assert not row.is_satisfied({"x": 8.0})
    assert row.is_satisfied({"x": 10.0})
    assert LinearConstraint("empty", {"x": 0.0}, "<=", -1.0).is_trivial()

    m = _small_model()
    assert m.objective_value({"x": 1.0, "y": 2.0}) == pytest.approx(5.0)
    assert m.unbounded_below() == ["z"]


def test_from_mapping():
    m = LinearModel.from_mapping(
        {
            "name": "bounds_conflict",
            "variables": [{"name": "x", "lb": 0, "ub": 8}, {"name": "y", "ub": "inf"}, {"name": "k", "integer": True}],
            "constraints": [{"name": "force", "coeffs": {"x": 1}, "sense": ">=", "rhs": 10}],
            "objective": {"x": 1},
        }
    )
    assert m.name == "bounds_conflict"
    assert m.variable("x").ub == 8.0
    assert m.variable("y").ub is None
    assert m.is_mip
    assert m.constraint("force").rhs == 10.0
