from pathlib import Path

import pytest

from benderskit.config import DEFAULT_SOLVER, BendersConfig, load_config, parse_config

ROOT = Path(__file__).resolve().parents[1]


def test_defaults_without_file(tmp_path):
    for cfg in (load_config(None), load_config(tmp_path / "missing.yaml")):
        assert isinstance(cfg, BendersConfig)
        assert cfg.run.max_iterations == 100
        assert cfg.run.theta_lower_bound == -1e3
        assert cfg.run.feasibility_cuts is True
        assert cfg.solver.master == DEFAULT_SOLVER
        assert cfg.problem.name == "worked_example"
        assert cfg.iis_model is None
        assert cfg.solver.mip_gap is None


def test_yaml_overrides(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text(
        "run:\n"
        "  max_iterations: 7\n"
        "  theta_lower_bound: null\n"
        "  feasibility_cuts: false\n"
        "solver:\n"
        "  name: glpk\n"
        "  subproblem: cbc\n"
        "  mip_gap: 1.0e-8\n"
        "  options: {mipgap: 0.0}\n"
        "problem:\n"
        "  f: [1]\n"
        "  c: [1]\n"
        "  A: [[-1]]\n"
        "  E: [[1]]\n"
        "  e: [-2]\n"
        "  x_upper: [3]\n"
        "unknown_section: 1\n",
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.run.max_iterations == 7
    assert cfg.run.theta_lower_bound is None
    assert cfg.run.feasibility_cuts is False
    assert cfg.solver.master == "glpk"
    assert cfg.solver.subproblem == "cbc"
    assert cfg.solver.mip_gap == pytest.approx(1e-8)
    assert cfg.solver.options == {"mipgap": 0.0}
    assert cfg.problem.n == 1 and cfg.problem.x_upper == [3.0]


def test_rejects_non_yaml_and_non_mapping(tmp_path):
    j = tmp_path / "cfg.json"
    j.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported config format"):
        load_config(j)

    lst = tmp_path / "cfg.yaml"
    lst.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_config(lst)


def test_bad_problem_is_reported():
    with pytest.raises(ValueError):
        parse_config({"problem": {"f": [1, 2], "c": [1], "A": [[1]], "E": [[1]], "e": [0]}})


def test_shipped_configs_parse():
    default = load_config(ROOT / "configs" / "default.yaml")
    assert default.run.print_every == 1
    assert default.problem.f == [1.0, 4.0]

    no_recourse = load_config(ROOT / "configs" / "no_recourse.yaml")
    assert no_recourse.problem.name == "no_recourse"
    assert no_recourse.run.max_iterations == 20
