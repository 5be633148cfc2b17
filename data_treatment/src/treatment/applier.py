"""Apply a fitted treatment plan to a table (``prepare``).

:func:`apply` is a pure function of ``(plan, table)``: it never mutates either
argument, keeps the input row order and index, and emits the synthetic
variables in score-frame order.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from ..data.schema import infer_column_kind, is_all_missing, level_strings, numeric_values
from ..errors import SchemaError
from .plan import ColumnDescriptor, TreatmentPlan
from .score_frame import CAT_B, CAT_P, CLEAN, IS_BAD, LEV, ScoreFrame, ScoreFrameEntry

logger = logging.getLogger(__name__)


def _check_kind(descriptor: ColumnDescriptor, series: pd.Series) -> None:
    if is_all_missing(series):
        return
    kind = infer_column_kind(series)
    if kind != descriptor.kind:
        raise SchemaError(
            f"Column {descriptor.name!r} was {descriptor.kind} at design time but is {kind} now "
            f"(dtype={series.dtype})."
        )


def _lookup(levels: np.ndarray, table: Dict[str, float]) -> np.ndarray:
    """Map level strings through ``table``; unknown levels -> 0.0."""
    mapped = pd.Series(levels, dtype=object).map(table)
    return mapped.fillna(0.0).to_numpy(dtype=float)


def treat_numeric(
    descriptor: ColumnDescriptor,
    series: pd.Series,
    entries: Iterable[ScoreFrameEntry],
) -> Dict[str, np.ndarray]:
    values = numeric_values(series)
    bad = ~np.isfinite(values)
    out: Dict[str, np.ndarray] = {}

    for entry in entries:
        if entry.kind == CLEAN:
            clean = values.copy()
            clean[bad] = descriptor.impute_value
            if descriptor.collar is not None:
                np.clip(clean, descriptor.collar[0], descriptor.collar[1], out=clean)
            out[entry.variable_name] = clean
        elif entry.kind == IS_BAD:
            out[entry.variable_name] = bad.astype(float)
        else:
            raise SchemaError(f"Variable kind {entry.kind!r} is invalid for numeric column {descriptor.name!r}.")
    return out


def treat_categorical(
    descriptor: ColumnDescriptor,
    series: pd.Series,
    entries: Iterable[ScoreFrameEntry],
) -> Dict[str, np.ndarray]:
    levels = level_strings(series, descriptor.missing_level or "")
    # A real value spelled like the missing-level label is a novel level, not a missing one.
    spoofed = ~series.isna().to_numpy() & (levels == descriptor.missing_level)
    out: Dict[str, np.ndarray] = {}

    for entry in entries:
        if entry.kind == LEV:
            out[entry.variable_name] = ((levels == entry.level) & ~spoofed).astype(float)
        elif entry.kind == CAT_P:
            out[entry.variable_name] = np.where(spoofed, 0.0, _lookup(levels, dict(descriptor.level_prevalence)))
        elif entry.kind == CAT_B:
            out[entry.variable_name] = np.where(spoofed, 0.0, _lookup(levels, dict(descriptor.impact_codes)))
        else:
            raise SchemaError(
                f"Variable kind {entry.kind!r} is invalid for categorical column {descriptor.name!r}."
            )
    return out


def select_variables(
    score_frame: ScoreFrame,
    variables: Optional[Iterable[str]] = None,
    prune_sig: Optional[float] = None,
) -> ScoreFrame:
    """Restrict a score frame to requested names and/or a significance cut-off.

    Entries without a significance value are never pruned.
    """
    frame = score_frame
    if variables is not None:
        frame = frame.select(list(variables))
    if prune_sig is not None:
        keep = [
            e.variable_name
            for e in frame
            if e.significance is None or e.significance <= float(prune_sig)
        ]
        frame = frame.select(keep)
    return frame


def apply(
    plan: TreatmentPlan,
    table: pd.DataFrame,
    *,
    variables: Optional[Iterable[str]] = None,
    prune_sig: Optional[float] = None,
) -> pd.DataFrame:
    """Emit the numeric treated table for ``table``.

    Parameters
    ----------
    plan:
        Fitted plan from :func:`~data_treatment.src.treatment.designer.design`
        (or the outcome-aware designer).
    table:
        Any table containing the plan's originating columns; extra columns are
        ignored.
    variables:
        Optional subset of synthetic variable names to emit.
    prune_sig:
        Optional significance threshold; scored variables above it are skipped.

    Raises
    ------
    SchemaError
        An originating column is missing or changed kind since design time.
    """
    if not isinstance(table, pd.DataFrame):
        raise TypeError(f"Expected a pandas DataFrame, got {type(table).__name__}.")

    frame = select_variables(plan.score_frame, variables, prune_sig)
    origins: List = frame.origin_columns
    missing = [c for c in origins if c not in table.columns]
    if missing:
        raise SchemaError(f"Columns required by the treatment plan are missing: {missing}")

    treated: Dict[str, np.ndarray] = {}
    for column in origins:
        descriptor = plan.descriptor(column)
        series = table[column]
        _check_kind(descriptor, series)
        entries = frame.for_column(column)
        if descriptor.is_numeric:
            treated.update(treat_numeric(descriptor, series, entries))
        else:
            treated.update(treat_categorical(descriptor, series, entries))

    names = frame.variable_names
    out = pd.DataFrame({name: treated[name] for name in names}, index=table.index, columns=names)
    logger.debug("Applied plan to %d rows -> %d variables", len(out), out.shape[1])
    return out


__all__ = ["apply", "select_variables", "treat_numeric", "treat_categorical"]
