"""Cross-validation fold planning.

:func:`plan_folds` partitions ``range(row_count)`` into ``k`` application
(held-out) sets under a pluggable strategy; each fold's training set is the
complement of its application set. Results are deterministic for a fixed
``seed``.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..errors import PolicyError
from ..utils.seed_utils import reproducible_numpy_rng
from .strategies import FoldStrategy, StrategyKind, resolve_strategy

logger = logging.getLogger(__name__)


def _frozen(a: np.ndarray) -> np.ndarray:
    a = np.asarray(a, dtype=int)
    a.setflags(write=False)
    return a


@dataclass(frozen=True, eq=False)
class FoldRecord:
    """Held-out (``application``) and fitting (``training``) row positions of one fold."""

    application: np.ndarray
    training: np.ndarray


@dataclass(frozen=True, eq=False)
class FoldAssignment:
    """Ordered fold records covering every row exactly once in ``application``."""

    folds: Tuple[FoldRecord, ...]
    row_count: int
    strategy: str = StrategyKind.PLAIN.value
    seed: Optional[int] = None

    def __len__(self) -> int:
        return len(self.folds)

    def __iter__(self) -> Iterator[FoldRecord]:
        return iter(self.folds)

    def __getitem__(self, i: int) -> FoldRecord:
        return self.folds[i]

    @property
    def k(self) -> int:
        return len(self.folds)

    def fold_ids(self) -> np.ndarray:
        """Fold index for every row position."""
        ids = np.full(self.row_count, -1, dtype=int)
        for i, fold in enumerate(self.folds):
            ids[fold.application] = i
        return ids

    def to_frame(self) -> pd.DataFrame:
        """``row``/``fold`` table (one line per row)."""
        return pd.DataFrame({"row": np.arange(self.row_count), "fold": self.fold_ids()})

    @classmethod
    def from_application_sets(
        cls,
        application_sets: Sequence[np.ndarray],
        row_count: int,
        *,
        strategy: str = StrategyKind.CUSTOM.value,
        seed: Optional[int] = None,
    ) -> "FoldAssignment":
        all_rows = np.arange(row_count)
        folds = tuple(
            FoldRecord(
                application=_frozen(np.sort(app)),
                training=_frozen(np.setdiff1d(all_rows, app, assume_unique=False)),
            )
            for app in application_sets
        )
        return cls(folds=folds, row_count=int(row_count), strategy=strategy, seed=seed)


def validate_partition(application_sets: Sequence[np.ndarray], row_count: int, k: int) -> None:
    """Raise :class:`PolicyError` unless the sets are a k-way partition of the rows."""
    if len(application_sets) != k:
        raise PolicyError(f"Strategy returned {len(application_sets)} folds; expected {k}.")

    counts = np.zeros(row_count, dtype=int)
    for i, app in enumerate(application_sets):
        app = np.asarray(app)
        if app.size == 0:
            raise PolicyError(f"Fold {i} has an empty application set.")
        if not np.issubdtype(app.dtype, np.integer):
            raise PolicyError(f"Fold {i} contains non-integer row indices.")
        if app.min() < 0 or app.max() >= row_count:
            raise PolicyError(f"Fold {i} contains row indices outside [0, {row_count}).")
        np.add.at(counts, app, 1)

    if not np.all(counts == 1):
        n_dup = int((counts > 1).sum())
        n_missing = int((counts == 0).sum())
        raise PolicyError(
            f"Application sets do not partition the rows ({n_dup} repeated, {n_missing} uncovered)."
        )


def plan_folds(
    row_count: int,
    k: int,
    strategy: Union[str, StrategyKind, FoldStrategy] = StrategyKind.PLAIN,
    outcome: Optional[Any] = None,
    *,
    seed: Optional[int] = None,
) -> FoldAssignment:
    """Partition ``range(row_count)`` into ``k`` folds.

    Parameters
    ----------
    row_count:
        Number of rows.
    k:
        Number of folds, ``2 <= k < row_count``.
    strategy:
        ``"plain"``, ``"stratified"`` or a :class:`FoldStrategy` instance.
    outcome:
        Per-row labels (required for stratified strategies).
    seed:
        Seed for the shuffling RNG.

    Raises
    ------
    PolicyError
        Invalid ``k``, missing/mis-sized outcome, or a strategy that violates
        the partition contract.
    """
    if not isinstance(row_count, numbers.Integral) or row_count < 0:
        raise PolicyError(f"row_count must be a non-negative integer, got {row_count!r}.")
    if not isinstance(k, numbers.Integral) or isinstance(k, bool):
        raise PolicyError(f"k must be an integer, got {k!r}.")
    if k < 2:
        raise PolicyError(f"k must be >= 2, got {k}.")
    if k >= row_count:
        raise PolicyError(f"k={k} must be smaller than the number of rows ({row_count}).")

    impl = resolve_strategy(strategy)

    y: Optional[np.ndarray] = None
    if outcome is not None:
        y = np.asarray(outcome, dtype=object)
        if y.shape[0] != row_count:
            raise PolicyError(f"Outcome has {y.shape[0]} entries; expected {row_count}.")
    elif impl.requires_outcome:
        raise PolicyError(f"Strategy {impl!r} requires an outcome.")

    rng = reproducible_numpy_rng(seed)
    application_sets = [np.asarray(a) for a in impl.split(int(row_count), int(k), y, rng)]
    validate_partition(application_sets, int(row_count), int(k))

    assignment = FoldAssignment.from_application_sets(
        application_sets,
        int(row_count),
        strategy=impl.kind.value,
        seed=seed,
    )
    logger.debug(
        "Planned %d folds over %d rows (strategy=%s, sizes=%s)",
        k,
        row_count,
        impl.kind.value,
        [f.application.size for f in assignment],
    )
    return assignment


__all__ = ["FoldRecord", "FoldAssignment", "plan_folds", "validate_partition"]
