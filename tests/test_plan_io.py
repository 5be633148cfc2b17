from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from data_treatment.src.data.examples import make_messy_table, make_rare_outcome_table
from data_treatment.src.errors import PolicyError
from data_treatment.src.treatment.applier import apply
from data_treatment.src.treatment.cross_frame import build_cross_frame
from data_treatment.src.treatment.designer import design
from data_treatment.src.treatment.plan import load_plan, save_plan
from data_treatment.src.treatment.policy import TreatmentPolicy, load_policy
from data_treatment.src.treatment.transformer import TreatmentTransformer


def test_unsupervised_plan_survives_yaml(tmp_path: Path) -> None:
    df = make_messy_table(n_rows=80, seed=1)
    plan = design(df, ["x", "w", "colour", "const"], TreatmentPolicy(imputation="median", collar_prob=0.05))

    path = save_plan(plan, tmp_path / "nested" / "plan.yaml")
    restored = load_plan(path)

    assert restored.policy == plan.policy
    assert restored.score_frame == plan.score_frame
    assert restored.dropped_columns == ["const"]
    pd.testing.assert_frame_equal(apply(restored, df), apply(plan, df))


def test_scored_plan_survives_yaml(tmp_path: Path) -> None:
    df = make_rare_outcome_table(n_rows=150, seed=2)
    plan = build_cross_frame(df, ["x", "zip"], "y", True, k=3, seed=0).plan

    restored = load_plan(save_plan(plan, tmp_path / "plan.yaml"))

    assert restored.is_outcome_aware
    assert restored.outcome_column == "y"
    assert restored.outcome_target is True
    assert restored.outcome_rate == pytest.approx(plan.outcome_rate)
    pd.testing.assert_frame_equal(restored.score_frame.to_frame(), plan.score_frame.to_frame())
    pd.testing.assert_frame_equal(apply(restored, df), apply(plan, df))


def test_integer_column_names_survive_yaml(tmp_path: Path) -> None:
    df = pd.DataFrame(np.arange(12.0).reshape(4, 3))
    df.iloc[1, 0] = np.nan
    plan = design(df, list(df.columns))

    restored = load_plan(save_plan(plan, tmp_path / "plan.yaml"))

    assert restored.columns == [0, 1, 2]
    assert restored.score_frame.origin_columns == [0, 1, 2]
    assert restored.new_variable_names == ["0_clean", "0_isBAD", "1_clean", "2_clean"]
    pd.testing.assert_frame_equal(apply(restored, df), apply(plan, df))


def test_fitted_transformer_plan_reloads_for_arrays(tmp_path: Path) -> None:
    X = np.array([[1.0, 5.0], [2.0, 3.0], [np.nan, 4.0], [4.0, 1.0]])
    transformer = TreatmentTransformer().fit(X)

    restored = load_plan(save_plan(transformer.plan_, tmp_path / "plan.yaml"))
    pd.testing.assert_frame_equal(apply(restored, pd.DataFrame(X)), transformer.transform(X))


def test_load_plan_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_plan(tmp_path / "absent.yaml")


def test_plan_summary_counts_kinds() -> None:
    df = pd.DataFrame({"x": [1.0, np.nan, 2.0], "c": ["a", "b", "a"], "k": [1, 1, 1]})
    plan = design(df, ["x", "c", "k"])
    summary = plan.summary()

    assert summary["n_columns"] == 3
    assert summary["n_variables"] == len(plan.new_variable_names)
    assert summary["dropped"] == ["k"]
    assert summary["kinds"]["clean"] == 1
    assert summary["kinds"]["isBAD"] == 1
    assert not summary["outcome_aware"]


def test_load_policy_reads_section(tmp_path: Path) -> None:
    cfg = tmp_path / "treatment.yaml"
    cfg.write_text(
        "treatment:\n"
        "  min_fraction: 0.1\n"
        "  code_restriction: [clean, lev]\n"
        "  imputation: median\n"
        "  imputation_overrides:\n"
        "    x: 0\n"
        "  unknown_key: 3\n"
    )
    policy = load_policy(cfg)

    assert policy.min_fraction == 0.1
    assert policy.code_restriction == frozenset({"clean", "lev"})
    assert policy.imputation_for("x") == 0
    assert policy.imputation_for("w") == "median"


def test_load_policy_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_policy(tmp_path / "nope.yaml") == TreatmentPolicy()


def test_load_policy_rejects_bad_values(tmp_path: Path) -> None:
    cfg = tmp_path / "treatment.yaml"
    cfg.write_text("treatment:\n  min_fraction: 3\n")
    with pytest.raises(PolicyError):
        load_policy(cfg)

    cfg.write_text("treatment: [1, 2]\n")
    with pytest.raises(PolicyError):
        load_policy(cfg)


def test_policy_dict_round_trip() -> None:
    policy = TreatmentPolicy(min_fraction=0.05, code_restriction={"catP", "catB"}, smoothing=1.0)
    assert TreatmentPolicy.from_dict(policy.to_dict()) == policy
