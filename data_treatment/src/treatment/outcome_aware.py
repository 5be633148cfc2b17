"""Outcome-aware (binary classification) treatment design.

This is the sibling of :mod:`~data_treatment.src.treatment.designer` used by
the cross-frame orchestrator. On top of the unsupervised variables it adds one
impact-coded variable per categorical column:

``<col>_catB``
    Smoothed log-odds shift of the outcome rate within the row's level,
    relative to the overall rate::

        p_level = (positives_level + s * p) / (n_level + s)
        catB    = logit(p_level) - logit(p)

    Levels unseen at design time code to 0.0 (no shift).

Impact codes use the outcome, so applying them to the same rows they were fit
on overstates their usefulness; the cross frame exists to avoid exactly that.
:func:`score_variables` rates every variable on a (cross-validated) frame with
a one-variable logistic regression.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, Optional, Tuple

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import log_loss

from ..data.schema import level_strings
from .designer import build_score_frame, check_columns, describe_categorical, describe_column, describe_numeric
from ..errors import PolicyError, SchemaError
from .plan import ColumnDescriptor, TreatmentPlan
from .policy import TreatmentPolicy
from .score_frame import ScoreFrame

logger = logging.getLogger(__name__)

_RATE_EPS = 1e-6


# ---------------------------------------------------------------------------
# Outcome helpers
# ---------------------------------------------------------------------------


def outcome_indicator(outcome: pd.Series, target: Any) -> np.ndarray:
    """1.0 where ``outcome == target``, else 0.0 (missing outcomes count as 0)."""
    return outcome.eq(target).fillna(False).to_numpy(dtype=float)


def check_outcome(table: pd.DataFrame, outcome_column: Any, outcome_target: Any) -> np.ndarray:
    """Validate the outcome column and return its 0/1 indicator."""
    if outcome_column not in table.columns:
        raise SchemaError(f"Outcome column {outcome_column!r} not found in table.")
    y = outcome_indicator(table[outcome_column], outcome_target)
    if y.sum() == 0:
        raise PolicyError(
            f"Outcome target {outcome_target!r} does not occur in column {outcome_column!r}."
        )
    return y


def _logit(p: np.ndarray | float) -> np.ndarray | float:
    p = np.clip(p, _RATE_EPS, 1.0 - _RATE_EPS)
    return np.log(p / (1.0 - p))


def impact_codes(levels: np.ndarray, y: np.ndarray, smoothing: float) -> Dict[str, float]:
    """Per-level ``catB`` codes (see module docstring)."""
    if levels.size == 0:
        return {}
    rate = float(y.mean())
    grouped = pd.DataFrame({"level": levels, "y": y}).groupby("level", sort=True)["y"].agg(["sum", "count"])
    smoothed = (grouped["sum"] + smoothing * rate) / (grouped["count"] + smoothing)
    codes = _logit(smoothed.to_numpy(dtype=float)) - _logit(rate)
    return {str(level): float(code) for level, code in zip(grouped.index, codes)}


def _with_impact(descriptor: ColumnDescriptor, series: pd.Series, y: np.ndarray, policy: TreatmentPolicy) -> ColumnDescriptor:
    if not descriptor.is_categorical:
        return descriptor
    levels = level_strings(series, descriptor.missing_level or "")
    return replace(descriptor, impact_codes=impact_codes(levels, y, float(policy.smoothing)))


# ---------------------------------------------------------------------------
# Design / refit
# ---------------------------------------------------------------------------


def design_outcome_aware(
    table: pd.DataFrame,
    columns_to_treat: Iterable[Any],
    outcome_column: Any,
    outcome_target: Any,
    policy: Optional[TreatmentPolicy] = None,
) -> TreatmentPlan:
    """Fit an outcome-aware plan on ``table`` (no cross-validation).

    Prefer :func:`~data_treatment.src.treatment.cross_frame.build_cross_frame`
    when the treated training data will be used to fit a model.
    """
    policy = (policy or TreatmentPolicy()).validate(outcome_aware=True)
    columns = check_columns(table, columns_to_treat, outcome_column)
    y = check_outcome(table, outcome_column, outcome_target)

    descriptors = tuple(
        _with_impact(describe_column(table[c], c, policy), table[c], y, policy) for c in columns
    )
    return TreatmentPlan(
        descriptors=descriptors,
        policy=policy,
        score_frame=build_score_frame(descriptors, policy, impact_coding=True),
        outcome_column=outcome_column,
        outcome_target=outcome_target,
        outcome_rate=float(y.mean()),
    )


def _refit_descriptor(
    template: ColumnDescriptor,
    series: pd.Series,
    y: np.ndarray,
    policy: TreatmentPolicy,
) -> ColumnDescriptor:
    """Re-estimate statistics on new rows, keeping the template's layout."""
    if template.is_numeric:
        fresh = describe_numeric(series, template.name, policy)
        return replace(
            fresh,
            varies=template.varies,
            impute_value=template.impute_value if fresh.impute_value is None else fresh.impute_value,
            collar=template.collar if fresh.collar is None else fresh.collar,
        )
    fresh = describe_categorical(series, template.name, policy, missing_level=template.missing_level)
    fresh = replace(fresh, varies=template.varies)
    return _with_impact(fresh, series, y, policy)


def refit_plan(plan: TreatmentPlan, table: pd.DataFrame) -> TreatmentPlan:
    """Refit an outcome-aware plan's statistics on ``table``.

    The variable layout (score frame, level indicators, missing-level label)
    is kept from ``plan`` so per-fold plans emit identical columns.
    """
    if not plan.is_outcome_aware:
        raise PolicyError("refit_plan requires an outcome-aware plan.")
    missing = [c for c in plan.columns if c not in table.columns]
    if missing:
        raise SchemaError(f"Columns required by the treatment plan are missing: {missing}")
    if plan.outcome_column not in table.columns:
        raise SchemaError(f"Outcome column {plan.outcome_column!r} not found in table.")

    y = outcome_indicator(table[plan.outcome_column], plan.outcome_target)
    descriptors = tuple(_refit_descriptor(d, table[d.name], y, plan.policy) for d in plan.descriptors)
    return replace(plan, descriptors=descriptors, outcome_rate=float(y.mean()) if y.size else None)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_variable(x: np.ndarray, y: np.ndarray) -> Tuple[float, float]:
    """Deviance pseudo-R^2 and chi-square significance of a 1-variable logit.

    Returns ``(0.0, 1.0)`` when either ``x`` or ``y`` is constant.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size == 0 or np.ptp(x) == 0.0 or np.ptp(y) == 0.0:
        return 0.0, 1.0

    rate = float(y.mean())
    null_deviance = 2.0 * log_loss(y, np.full(y.size, rate), normalize=False, labels=[0.0, 1.0])

    z = ((x - x.mean()) / x.std()).reshape(-1, 1)
    model = LogisticRegression(C=1e6, max_iter=1000)
    model.fit(z, y)
    p = model.predict_proba(z)[:, 1]
    deviance = 2.0 * log_loss(y, p, normalize=False, labels=[0.0, 1.0])

    delta = max(null_deviance - deviance, 0.0)
    strength = delta / null_deviance if null_deviance > 0 else 0.0
    significance = float(stats.chi2.sf(delta, df=1))
    return float(strength), significance


def score_variables(frame: pd.DataFrame, y: np.ndarray, score_frame: ScoreFrame) -> ScoreFrame:
    """Fill association strength and significance for every variable in ``frame``."""
    scores: Dict[str, Tuple[float, float]] = {}
    for name in score_frame.variable_names:
        if name in frame.columns:
            scores[name] = score_variable(frame[name].to_numpy(dtype=float), y)
    return score_frame.with_scores(scores)


__all__ = [
    "outcome_indicator",
    "check_outcome",
    "impact_codes",
    "design_outcome_aware",
    "refit_plan",
    "score_variable",
    "score_variables",
]
