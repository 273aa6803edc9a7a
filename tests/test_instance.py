import pytest

from benderskit.problem.instance import BendersInstance, random_instance, worked_example


def test_dimension_checks():
    with pytest.raises(ValueError, match="A row 0"):
        BendersInstance(f=[1, 1], c=[1], A=[[1]], E=[[1]], e=[0])
    with pytest.raises(ValueError, match="E row 0"):
        BendersInstance(f=[1], c=[1, 2], A=[[1]], E=[[1]], e=[0])
    with pytest.raises(ValueError, match="rows"):
        BendersInstance(f=[1], c=[1], A=[[1], [1]], E=[[1]], e=[0])
    with pytest.raises(ValueError, match="lacks"):
        BendersInstance.from_mapping({"f": [1], "c": [1]})


def test_worked_example_costs():
    inst = worked_example()
    assert (inst.n, inst.m, inst.rows) == (2, 2, 2)
    assert inst.total_cost([0, 1], [0, 0]) == pytest.approx(4.0)
    assert inst.is_feasible([0, 1], [0, 0])
    # x = 0 needs recourse: y = (4/3, 5/3) is the cheapest
    assert not inst.is_feasible([0, 0], [0, 0])
    assert inst.is_feasible([0, 0], [4 / 3, 5 / 3])
    assert inst.recourse_cost([4 / 3, 5 / 3]) == pytest.approx(23 / 3)


def test_monolithic_model_layout():
    mono = worked_example().monolithic_model()
    assert mono.variable_names() == ["x[0]", "x[1]", "y[0]", "y[1]"]
    assert mono.constraint_names() == ["row[0]", "row[1]"]
    assert mono.is_mip
    assert mono.constraint("row[0]").coeffs == {"x[0]": 1.0, "x[1]": -3.0, "y[0]": 1.0, "y[1]": -2.0}


def test_mapping_roundtrip_keeps_caps():
    inst = BendersInstance(f=[1], c=[1], A=[[-1]], E=[[1]], e=[-2], x_upper=[4], name="capped")
    again = BendersInstance.from_mapping(inst.as_mapping())
    assert again.x_upper == [4.0]
    assert again.name == "capped"


def test_random_instance_has_complete_recourse():
    inst = random_instance(3, 2, 4, seed=11)
    assert inst.m == 3  # two drawn columns plus the penalised slack
    assert all(row[-1] == -1.0 for row in inst.E)
    assert inst.x_upper == [5.0, 5.0, 5.0]
    # any x is feasible with a large enough slack
    x = [5.0, 0.0, 2.0]
    slack = max(0.0, max(a - b for a, b in zip(inst.row_activity(x, [0.0, 0.0, 0.0]), inst.e)))
    assert inst.is_feasible(x, [0.0, 0.0, slack])
    assert random_instance(3, 2, 4, seed=11).as_mapping() == inst.as_mapping()
