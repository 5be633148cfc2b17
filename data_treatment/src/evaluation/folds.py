"""Fold balance diagnostics.

Used to compare plain and stratified fold plans: a good stratified plan keeps
each fold's outcome prevalence close to the full-table prevalence.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from ..cv.planner import FoldAssignment


def _indicator(outcome: Any, target: Any) -> np.ndarray:
    return pd.Series(np.asarray(outcome, dtype=object)).eq(target).to_numpy(dtype=float)


def fold_prevalence(folds: FoldAssignment, outcome: Any, target: Any = 1) -> np.ndarray:
    """Fraction of ``target`` rows in each fold's application set."""
    y = _indicator(outcome, target)
    if y.size != folds.row_count:
        raise ValueError(f"outcome has {y.size} rows; fold plan covers {folds.row_count}.")
    return np.array([y[f.application].mean() if f.application.size else np.nan for f in folds])


def fold_prevalence_std(folds: FoldAssignment, outcome: Any, target: Any = 1) -> float:
    """Population standard deviation of fold-level prevalence."""
    return float(np.nanstd(fold_prevalence(folds, outcome, target)))


def fold_balance_summary(folds: FoldAssignment, outcome: Any, target: Any = 1) -> pd.DataFrame:
    """Per-fold table: size, positives, prevalence and deviation from the overall rate."""
    y = _indicator(outcome, target)
    overall = float(y.mean()) if y.size else float("nan")
    rows = []
    for i, fold in enumerate(folds):
        app = fold.application
        prev = float(y[app].mean()) if app.size else float("nan")
        rows.append(
            {
                "fold": i,
                "n_application": int(app.size),
                "n_training": int(fold.training.size),
                "positives": int(y[app].sum()),
                "prevalence": prev,
                "deviation": prev - overall,
            }
        )
    return pd.DataFrame(rows, columns=["fold", "n_application", "n_training", "positives", "prevalence", "deviation"])


__all__ = ["fold_prevalence", "fold_prevalence_std", "fold_balance_summary"]
