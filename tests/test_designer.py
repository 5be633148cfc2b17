import numpy as np
import pandas as pd
import pytest

from data_treatment.src.errors import PolicyError, SchemaError
from data_treatment.src.treatment.applier import apply
from data_treatment.src.treatment.designer import choose_missing_level, design
from data_treatment.src.treatment.policy import TreatmentPolicy


def _abc_table() -> pd.DataFrame:
    return pd.DataFrame({"c": ["A"] * 6 + ["B"] * 3 + ["C"]})


def test_numeric_column_with_missing_gets_clean_and_isbad() -> None:
    df = pd.DataFrame({"x": [1, 2, np.nan, 4, 5, 6, 7, 8, 9, 10]})
    plan = design(df, ["x"])

    assert plan.new_variable_names == ["x_clean", "x_isBAD"]
    treated = apply(plan, df)
    assert treated["x_isBAD"].sum() == 1.0
    others = [1, 2, 4, 5, 6, 7, 8, 9, 10]
    assert treated["x_clean"].iloc[2] == pytest.approx(np.mean(others))
    assert not treated["x_clean"].isna().any()


def test_numeric_column_without_missing_has_no_isbad() -> None:
    df = pd.DataFrame({"x": [1.0, 2.0, 3.0]})
    plan = design(df, ["x"])
    assert plan.new_variable_names == ["x_clean"]


def test_isbad_sums_to_missing_count_on_design_table() -> None:
    rng = np.random.default_rng(0)
    x = rng.normal(size=50)
    x[[3, 7, 11, 40]] = np.nan
    df = pd.DataFrame({"x": x})
    treated = apply(design(df, ["x"]), df)
    assert treated["x_isBAD"].sum() == 4.0
    assert np.isfinite(treated["x_clean"]).all()


def test_constant_columns_are_dropped() -> None:
    df = pd.DataFrame(
        {
            "const_num": [3.0, 3.0, np.nan, 3.0],
            "const_cat": ["a", "a", None, "a"],
            "all_missing": [np.nan] * 4,
            "x": [1.0, 2.0, 3.0, 4.0],
        }
    )
    plan = design(df, list(df.columns))

    assert plan.score_frame.origin_columns == ["x"]
    assert set(plan.dropped_columns) == {"const_num", "const_cat", "all_missing"}
    assert list(apply(plan, df).columns) == ["x_clean"]


def test_categorical_levels_respect_min_fraction() -> None:
    df = _abc_table()
    plan = design(df, ["c"], TreatmentPolicy(min_fraction=0.2))

    assert plan.new_variable_names == ["c_lev_A", "c_lev_B", "c_catP"]
    treated = apply(plan, pd.DataFrame({"c": ["C"]}))
    assert treated["c_lev_A"].iloc[0] == 0.0
    assert treated["c_lev_B"].iloc[0] == 0.0
    assert treated["c_catP"].iloc[0] == pytest.approx(0.10)


def test_min_fraction_boundary_is_inclusive() -> None:
    plan = design(_abc_table(), ["c"], TreatmentPolicy(min_fraction=0.3))
    assert "c_lev_B" in plan.score_frame


def test_missing_values_form_their_own_level() -> None:
    df = pd.DataFrame({"c": ["a", "b", None, None, "a", "b"]})
    plan = design(df, ["c"], TreatmentPolicy(min_fraction=0.1))

    assert "c_lev_NA" in plan.score_frame
    treated = apply(plan, df)
    np.testing.assert_array_equal(treated["c_lev_NA"].to_numpy(), [0, 0, 1, 1, 0, 0])
    assert treated["c_catP"].iloc[2] == pytest.approx(2 / 6)


def test_missing_level_label_avoids_real_levels() -> None:
    assert choose_missing_level({"NA", "x"}, "NA") == "_NA_"
    df = pd.DataFrame({"c": ["NA", "x", None, "x"]})
    plan = design(df, ["c"], TreatmentPolicy(min_fraction=0.0))
    descriptor = plan.descriptor("c")
    assert descriptor.missing_level == "_NA_"
    assert descriptor.level_prevalence["NA"] == pytest.approx(0.25)
    assert descriptor.level_prevalence["_NA_"] == pytest.approx(0.25)


def test_code_restriction_filters_kinds_only() -> None:
    df = pd.DataFrame({"x": [1.0, np.nan, 3.0, 4.0], "c": ["a", "b", "a", "b"]})
    plan = design(df, ["x", "c"], TreatmentPolicy(code_restriction={"lev", "isBAD"}))

    kinds = {e.kind for e in plan.score_frame}
    assert kinds == {"lev", "isBAD"}
    assert plan.descriptor("x").impute_value == pytest.approx(8.0 / 3.0)
    assert plan.descriptor("c").level_prevalence["a"] == pytest.approx(0.5)


def test_variable_names_are_unique() -> None:
    df = pd.DataFrame({"a b": [1.0, 2.0, 3.0], "a_b": [3.0, 1.0, 2.0]})
    plan = design(df, ["a b", "a_b"])
    assert plan.new_variable_names == ["a_b_clean", "a_b_clean_1"]


def test_imputation_rules() -> None:
    df = pd.DataFrame({"x": [1.0, 2.0, 100.0, np.nan], "z": [0.0, 1.0, np.nan, 1.0]})
    policy = TreatmentPolicy(imputation="median", imputation_overrides={"z": -1.0})
    plan = design(df, ["x", "z"], policy)
    treated = apply(plan, df)
    assert treated["x_clean"].iloc[3] == 2.0
    assert treated["z_clean"].iloc[2] == -1.0


def test_infinite_values_are_bad() -> None:
    df = pd.DataFrame({"x": [1.0, np.inf, 3.0, -np.inf]})
    treated = apply(design(df, ["x"]), df)
    np.testing.assert_array_equal(treated["x_isBAD"].to_numpy(), [0, 1, 0, 1])
    np.testing.assert_array_equal(treated["x_clean"].to_numpy(), [1.0, 2.0, 3.0, 2.0])


def test_boolean_columns_are_numeric() -> None:
    df = pd.DataFrame({"flag": [True, False, True]})
    plan = design(df, ["flag"])
    assert plan.new_variable_names == ["flag_clean"]
    np.testing.assert_array_equal(apply(plan, df)["flag_clean"].to_numpy(), [1.0, 0.0, 1.0])


def test_unsupervised_score_frame_has_no_scores() -> None:
    frame = design(_abc_table(), ["c"]).score_frame.to_frame()
    assert list(frame.columns) == [
        "variable_name",
        "origin_column",
        "kind",
        "association_strength",
        "significance",
    ]
    assert frame["significance"].isna().all()


def test_missing_column_raises_schema_error() -> None:
    with pytest.raises(SchemaError):
        design(_abc_table(), ["c", "nope"])


def test_outcome_column_cannot_be_treated() -> None:
    df = pd.DataFrame({"x": [1.0, 2.0], "y": [0, 1]})
    with pytest.raises(SchemaError):
        design(df, ["x", "y"], outcome_column="y")


@pytest.mark.parametrize(
    "policy",
    [
        TreatmentPolicy(min_fraction=1.5),
        TreatmentPolicy(min_fraction=-0.1),
        TreatmentPolicy(code_restriction={"clean", "bogus"}),
        TreatmentPolicy(code_restriction={"catB"}),
        TreatmentPolicy(imputation="mode"),
        TreatmentPolicy(collar_prob=0.5),
    ],
)
def test_invalid_policy_raises_policy_error(policy: TreatmentPolicy) -> None:
    with pytest.raises(PolicyError):
        design(_abc_table(), ["c"], policy)


def test_errors_keep_builtin_bases() -> None:
    with pytest.raises(KeyError):
        design(_abc_table(), ["nope"])
    with pytest.raises(ValueError):
        design(_abc_table(), ["c"], TreatmentPolicy(min_fraction=2.0))
