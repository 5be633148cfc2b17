import numpy as np
import pandas as pd
import pytest

from data_treatment.src.errors import PolicyError
from data_treatment.src.treatment.applier import apply
from data_treatment.src.treatment.designer import design
from data_treatment.src.treatment.outcome_aware import (
    design_outcome_aware,
    impact_codes,
    outcome_indicator,
    refit_plan,
    score_variable,
)


def _level_table() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "c": ["hi"] * 10 + ["lo"] * 10,
            "y": [1] * 8 + [0] * 2 + [1] * 2 + [0] * 8,
        }
    )


def test_outcome_indicator_treats_missing_as_negative() -> None:
    y = outcome_indicator(pd.Series(["yes", None, "no", "yes"]), "yes")
    np.testing.assert_array_equal(y, [1.0, 0.0, 0.0, 1.0])


def test_impact_codes_follow_level_rates() -> None:
    levels = np.array(["hi"] * 10 + ["lo"] * 10, dtype=object)
    y = np.array([1.0] * 8 + [0.0] * 2 + [1.0] * 2 + [0.0] * 8)
    codes = impact_codes(levels, y, smoothing=0.5)

    p_hi = (8 + 0.5 * 0.5) / 10.5
    assert codes["hi"] == pytest.approx(np.log(p_hi / (1 - p_hi)))
    assert codes["hi"] > 0 > codes["lo"]
    assert codes["hi"] == pytest.approx(-codes["lo"])


def test_outcome_aware_plan_emits_catb_and_scores_nothing_yet() -> None:
    plan = design_outcome_aware(_level_table(), ["c"], "y", 1)

    assert plan.is_outcome_aware
    assert plan.outcome_rate == pytest.approx(0.5)
    assert plan.score_frame.variables_of("catB") == ["c_catB"]
    treated = apply(plan, pd.DataFrame({"c": ["hi", "lo", "new"]}))
    assert treated["c_catB"].iloc[0] > 0
    assert treated["c_catB"].iloc[1] < 0
    assert treated["c_catB"].iloc[2] == 0.0


def test_unsupervised_plan_has_no_catb() -> None:
    plan = design(_level_table(), ["c"])
    assert plan.score_frame.variables_of("catB") == []
    assert not plan.is_outcome_aware


def test_refit_keeps_layout() -> None:
    table = _level_table()
    plan = design_outcome_aware(table, ["c"], "y", 1)
    subset = table.iloc[:12]

    refit = refit_plan(plan, subset)
    assert refit.new_variable_names == plan.new_variable_names
    assert refit.outcome_rate == pytest.approx(10 / 12)
    assert refit.descriptor("c").level_prevalence["lo"] == pytest.approx(2 / 12)


def test_refit_requires_outcome_aware_plan() -> None:
    with pytest.raises(PolicyError):
        refit_plan(design(_level_table(), ["c"]), _level_table())


def test_score_variable_constant_inputs() -> None:
    assert score_variable(np.ones(10), np.arange(10) % 2) == (0.0, 1.0)
    assert score_variable(np.arange(10.0), np.zeros(10)) == (0.0, 1.0)


def test_score_variable_detects_signal() -> None:
    rng = np.random.default_rng(0)
    x = rng.normal(size=400)
    y = (rng.random(400) < 1.0 / (1.0 + np.exp(-2.0 * x))).astype(float)
    noise = rng.normal(size=400)

    strength, sig = score_variable(x, y)
    noise_strength, _ = score_variable(noise, y)

    assert 0.0 < strength < 1.0
    assert sig < 1e-6
    assert noise_strength < strength


def test_catb_ignores_values_spelled_like_missing_label() -> None:
    table = pd.DataFrame({"c": ["a", "b", None, None] * 5, "y": [1, 0, 0, 0] * 5})
    plan = design_outcome_aware(table, ["c"], "y", 1)

    treated = apply(plan, pd.DataFrame({"c": ["NA", None]}))
    assert treated["c_catB"].iloc[0] == 0.0
    assert treated["c_catB"].iloc[1] < 0.0
