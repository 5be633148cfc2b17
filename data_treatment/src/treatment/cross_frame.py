"""Cross-frame construction for outcome-aware treatments.

Impact-coded variables (``catB``) are fit on the outcome. Applying them to
the very rows they were fit on makes them look far more predictive than they
are (nested-model bias). :func:`build_cross_frame` avoids that:

1) plan ``k`` folds over the rows;
2) for each fold, refit the outcome-aware plan on the fold's *training* rows
   and apply it to the fold's *application* rows only;
3) stitch the per-fold outputs into one cross frame (each fold writes a
   disjoint set of row positions);
4) fit one global plan on all rows for future data, and score its variables
   on the cross frame.

Folds are independent, so ``n_jobs > 1`` runs them on a bounded thread pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, List, NamedTuple, Optional, Tuple, Union

import numpy as np
import pandas as pd

from ..cv.planner import FoldAssignment, FoldRecord, plan_folds
from ..cv.strategies import FoldStrategy, StrategyKind
from ..errors import LeakageError
from .applier import apply
from .outcome_aware import check_outcome, design_outcome_aware, refit_plan, score_variables
from .plan import TreatmentPlan
from .policy import TreatmentPolicy

logger = logging.getLogger(__name__)

DEFAULT_FOLDS = 5


class CrossFrameResult(NamedTuple):
    cross_frame: pd.DataFrame
    plan: TreatmentPlan
    folds: FoldAssignment


def check_fold_assignment(folds: FoldAssignment, row_count: int) -> None:
    """Raise :class:`LeakageError` if any fold could see its own rows' outcomes."""
    if folds.row_count != row_count:
        raise LeakageError(f"Fold plan covers {folds.row_count} rows; table has {row_count}.")

    seen = np.zeros(row_count, dtype=int)
    for i, fold in enumerate(folds):
        overlap = np.intersect1d(fold.application, fold.training)
        if overlap.size:
            raise LeakageError(
                f"Fold {i}: {overlap.size} application rows are also training rows "
                f"(first: {overlap[:5].tolist()})."
            )
        np.add.at(seen, fold.application, 1)

    if not np.all(seen == 1):
        raise LeakageError("Fold application sets do not partition the table rows.")


def _treat_fold(
    plan: TreatmentPlan,
    table: pd.DataFrame,
    fold: FoldRecord,
) -> Tuple[np.ndarray, np.ndarray]:
    fold_plan = refit_plan(plan, table.iloc[fold.training])
    treated = apply(fold_plan, table.iloc[fold.application])
    return fold.application, treated[plan.new_variable_names].to_numpy(dtype=float)


def build_cross_frame(
    table: pd.DataFrame,
    columns_to_treat: Iterable[Any],
    outcome_column: Any,
    outcome_target: Any,
    k: int = DEFAULT_FOLDS,
    strategy: Union[str, StrategyKind, FoldStrategy] = StrategyKind.PLAIN,
    *,
    policy: Optional[TreatmentPolicy] = None,
    seed: Optional[int] = None,
    n_jobs: int = 1,
) -> CrossFrameResult:
    """Build a leakage-free treated training table plus a global plan.

    Parameters
    ----------
    table:
        Training table including ``outcome_column``.
    columns_to_treat:
        Input columns (must not include ``outcome_column``).
    outcome_column, outcome_target:
        Binary outcome definition: rows where ``outcome == outcome_target``
        are positives.
    k, strategy, seed:
        Fold plan settings (see :func:`~data_treatment.src.cv.planner.plan_folds`).
    policy:
        Treatment policy shared by the global and per-fold plans.
    n_jobs:
        Maximum number of folds processed concurrently.

    Returns
    -------
    CrossFrameResult
        ``(cross_frame, plan, folds)``; ``cross_frame`` has the plan's
        variables in score-frame order followed by the outcome column.

    Raises
    ------
    PolicyError
        ``outcome_target`` never occurs, or the fold settings are invalid.
    SchemaError
        A column is missing, or the outcome column is listed as an input.
    LeakageError
        A fold's application rows overlap its training rows.
    """
    y = check_outcome(table, outcome_column, outcome_target)
    plan = design_outcome_aware(table, columns_to_treat, outcome_column, outcome_target, policy)

    n_rows = len(table)
    folds = plan_folds(n_rows, k, strategy, outcome=table[outcome_column].to_numpy(), seed=seed)
    check_fold_assignment(folds, n_rows)

    names = plan.new_variable_names
    values = np.full((n_rows, len(names)), np.nan, dtype=float)
    positional = table.reset_index(drop=True)

    if n_jobs > 1 and len(folds) > 1:
        with ThreadPoolExecutor(max_workers=min(int(n_jobs), len(folds))) as executor:
            results: List[Tuple[np.ndarray, np.ndarray]] = list(
                executor.map(lambda f: _treat_fold(plan, positional, f), folds)
            )
    else:
        results = [_treat_fold(plan, positional, f) for f in folds]

    for rows, block in results:
        values[rows] = block

    cross_frame = pd.DataFrame(values, index=table.index, columns=names)
    plan = plan.with_score_frame(score_variables(cross_frame, y, plan.score_frame))
    cross_frame[outcome_column] = table[outcome_column].to_numpy()

    logger.info(
        "Built cross frame: %d rows x %d variables over %d folds (strategy=%s)",
        n_rows,
        len(names),
        len(folds),
        folds.strategy,
    )
    return CrossFrameResult(cross_frame=cross_frame, plan=plan, folds=folds)


__all__ = ["DEFAULT_FOLDS", "CrossFrameResult", "check_fold_assignment", "build_cross_frame"]
