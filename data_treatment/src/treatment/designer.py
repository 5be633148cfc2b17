"""Unsupervised (outcome-blind) treatment design.

:func:`design` inspects a raw table once and derives, per requested column,
the synthetic numeric variables that :func:`~data_treatment.src.treatment.applier.apply`
will later emit:

Numeric columns
    ``<col>_clean``  value with missing/NaN/inf replaced by the imputed value
    ``<col>_isBAD``  1.0 where the value was missing/NaN/inf (only emitted if
                     at least one training value was bad)

Categorical columns (missing values form their own level)
    ``<col>_lev_<level>``  indicator per level with prevalence >= min_fraction
    ``<col>_catP``         training prevalence of the row's level

Columns whose non-missing values never differ produce no
variables at all and are dropped silently.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..data.schema import CATEGORICAL, NUMERIC, infer_column_kind, level_strings, numeric_values
from ..errors import SchemaError
from .plan import ColumnDescriptor, TreatmentPlan
from .policy import TreatmentPolicy
from .score_frame import CAT_B, CAT_P, CLEAN, IS_BAD, LEV, ScoreFrame, ScoreFrameEntry

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.]")


# ---------------------------------------------------------------------------
# Input checks
# ---------------------------------------------------------------------------


def check_columns(
    table: pd.DataFrame,
    columns_to_treat: Iterable[Any],
    outcome_column: Optional[Any] = None,
) -> List[Any]:
    """Validate the requested columns and return them de-duplicated, in order."""
    if not isinstance(table, pd.DataFrame):
        raise TypeError(f"Expected a pandas DataFrame, got {type(table).__name__}.")

    if isinstance(columns_to_treat, str):
        columns_to_treat = [columns_to_treat]
    columns = list(dict.fromkeys(columns_to_treat))

    missing = [c for c in columns if c not in table.columns]
    if missing:
        raise SchemaError(f"Columns not found in table: {missing}")
    if outcome_column is not None and outcome_column in columns:
        raise SchemaError(f"Outcome column {outcome_column!r} must not be treated as an input column.")
    return columns


# ---------------------------------------------------------------------------
# Column statistics
# ---------------------------------------------------------------------------


def _impute_value(finite: np.ndarray, rule: Any) -> Optional[float]:
    if not isinstance(rule, str):
        return float(rule)
    if finite.size == 0:
        return None
    if rule == "median":
        return float(np.median(finite))
    return float(np.mean(finite))


def describe_numeric(series: pd.Series, name: Any, policy: TreatmentPolicy) -> ColumnDescriptor:
    """Fit statistics for a numeric column (bad = missing, NaN or infinite)."""
    values = numeric_values(series)
    bad = ~np.isfinite(values)
    finite = values[~bad]

    varies = bool(finite.size > 0 and finite.min() != finite.max())
    collar: Optional[Tuple[float, float]] = None
    if varies and policy.collar_prob > 0.0:
        lo, hi = np.quantile(finite, [policy.collar_prob, 1.0 - policy.collar_prob])
        collar = (float(lo), float(hi))

    return ColumnDescriptor(
        name=name,
        kind=NUMERIC,
        n_rows=int(values.size),
        n_missing=int(bad.sum()),
        varies=varies,
        impute_value=_impute_value(finite, policy.imputation_for(name)),
        collar=collar,
    )


def choose_missing_level(observed: Iterable[str], preferred: str) -> str:
    """Return a missing-level label that differs from every real level."""
    taken = set(observed)
    label = preferred
    while label in taken:
        label = f"_{label}_"
    return label


def level_counts(levels: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Distinct levels and counts, most frequent first (ties by level text)."""
    if levels.size == 0:
        return np.array([], dtype=object), np.array([], dtype=int)
    uniq, counts = np.unique(levels.astype(str), return_counts=True)
    order = np.argsort(-counts, kind="stable")
    return uniq[order].astype(object), counts[order]


def describe_categorical(
    series: pd.Series,
    name: Any,
    policy: TreatmentPolicy,
    *,
    missing_level: Optional[str] = None,
) -> ColumnDescriptor:
    """Fit level prevalences for a categorical column.

    ``missing_level`` pins the sentinel label (used when refitting a plan on a
    subset of rows); by default a label distinct from every real level is chosen.
    """
    observed = {str(v) for v in series.dropna().unique()}
    if missing_level is None:
        missing_level = choose_missing_level(observed, policy.missing_level)
    levels = level_strings(series, missing_level)

    uniq, counts = level_counts(levels)
    n = int(levels.size)
    prevalence: Dict[str, float] = {}
    if n > 0:
        prevalence = {str(lvl): float(cnt) / n for lvl, cnt in zip(uniq, counts)}

    return ColumnDescriptor(
        name=name,
        kind=CATEGORICAL,
        n_rows=n,
        n_missing=int(series.isna().sum()),
        varies=len(observed) > 1,
        level_prevalence=prevalence,
        missing_level=missing_level,
    )


def describe_column(series: pd.Series, name: Any, policy: TreatmentPolicy) -> ColumnDescriptor:
    if infer_column_kind(series) == NUMERIC:
        return describe_numeric(series, name, policy)
    return describe_categorical(series, name, policy)


# ---------------------------------------------------------------------------
# Score frame construction
# ---------------------------------------------------------------------------


class _NameAllocator:
    """Hands out sanitised, unique synthetic variable names."""

    def __init__(self) -> None:
        self._used: set[str] = set()

    def __call__(self, *parts: Any) -> str:
        base = "_".join(_UNSAFE_NAME_CHARS.sub("_", str(p)) for p in parts)
        name = base
        i = 1
        while name in self._used:
            name = f"{base}_{i}"
            i += 1
        self._used.add(name)
        return name


def build_score_frame(
    descriptors: Sequence[ColumnDescriptor],
    policy: TreatmentPolicy,
    *,
    impact_coding: bool = False,
) -> ScoreFrame:
    """Derive the ordered score frame from fitted column descriptors.

    ``policy.code_restriction`` only filters which candidate kinds are
    emitted; it never changes the fitted statistics.
    """
    allocate = _NameAllocator()
    entries: List[ScoreFrameEntry] = []

    for d in descriptors:
        if not d.varies:
            continue

        if d.is_numeric:
            if policy.allows(CLEAN):
                entries.append(ScoreFrameEntry(allocate(d.name, "clean"), d.name, CLEAN))
            if d.n_missing > 0 and policy.allows(IS_BAD):
                entries.append(ScoreFrameEntry(allocate(d.name, "isBAD"), d.name, IS_BAD))
            continue

        if policy.allows(LEV):
            for level, prev in d.level_prevalence.items():
                if prev >= policy.min_fraction:
                    entries.append(
                        ScoreFrameEntry(allocate(d.name, "lev", level), d.name, LEV, level=level)
                    )
        if policy.allows(CAT_P):
            entries.append(ScoreFrameEntry(allocate(d.name, "catP"), d.name, CAT_P))
        if impact_coding and policy.allows(CAT_B):
            entries.append(ScoreFrameEntry(allocate(d.name, "catB"), d.name, CAT_B))

    return ScoreFrame(entries)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def design(
    table: pd.DataFrame,
    columns_to_treat: Iterable[Any],
    policy: Optional[TreatmentPolicy] = None,
    *,
    outcome_column: Optional[Any] = None,
) -> TreatmentPlan:
    """Fit an unsupervised treatment plan.

    Parameters
    ----------
    table:
        Raw training table.
    columns_to_treat:
        Columns to derive variables from; must exist in ``table``.
    policy:
        Treatment settings (default: :class:`TreatmentPolicy()`).
    outcome_column:
        Optional outcome column name; it is rejected if listed in
        ``columns_to_treat``.

    Raises
    ------
    SchemaError
        A requested column is absent, or the outcome column is requested.
    PolicyError
        The policy is invalid.
    """
    policy = (policy or TreatmentPolicy()).validate()
    columns = check_columns(table, columns_to_treat, outcome_column)

    descriptors = tuple(describe_column(table[c], c, policy) for c in columns)
    plan = TreatmentPlan(
        descriptors=descriptors,
        policy=policy,
        score_frame=build_score_frame(descriptors, policy),
    )

    constant = [d.name for d in descriptors if not d.varies]
    if constant:
        logger.info("Dropping constant columns: %s", constant)
    logger.debug("Designed treatment plan: %s", plan.summary())
    return plan


__all__ = [
    "check_columns",
    "describe_numeric",
    "describe_categorical",
    "describe_column",
    "choose_missing_level",
    "build_score_frame",
    "design",
]
