"""Fold-partition strategies.

Strategies form a closed set (:class:`StrategyKind`): the two built-ins
:class:`PlainKWay` and :class:`StratifiedKWay`, plus ``custom`` for any user
subclass of :class:`FoldStrategy`. Every strategy returns ``k`` application
index arrays that must partition ``range(row_count)``;
:func:`~data_treatment.src.cv.planner.plan_folds` checks that contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..errors import PolicyError


class StrategyKind(str, Enum):
    PLAIN = "plain"
    STRATIFIED = "stratified"
    CUSTOM = "custom"


class FoldStrategy(ABC):
    """Interface for fold partitioners.

    Subclasses implement :meth:`split`. Set ``requires_outcome = True`` when
    the strategy needs per-row labels.
    """

    kind: StrategyKind = StrategyKind.CUSTOM
    requires_outcome: bool = False

    @abstractmethod
    def split(
        self,
        row_count: int,
        k: int,
        outcome: Optional[np.ndarray],
        rng: np.random.Generator,
    ) -> Sequence[np.ndarray]:
        """Return ``k`` application index arrays partitioning ``range(row_count)``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r})"


def kway_split(
    indices: np.ndarray,
    k: int,
    rng: np.random.Generator,
    *,
    offset: int = 0,
) -> List[np.ndarray]:
    """Shuffle ``indices`` and cut them into ``k`` chunks differing in size by <= 1.

    Chunk ``j`` goes to fold ``(j + offset) % k``; the larger chunks come
    first, so ``offset`` decides which folds receive the remainder rows.
    """
    chunks = np.array_split(rng.permutation(np.asarray(indices, dtype=int)), k)
    folds: List[np.ndarray] = [np.empty(0, dtype=int)] * k
    for j, chunk in enumerate(chunks):
        folds[(j + offset) % k] = chunk
    return folds


class PlainKWay(FoldStrategy):
    """Random k-way partition of all rows."""

    kind = StrategyKind.PLAIN

    def split(self, row_count, k, outcome, rng):
        return [np.sort(f) for f in kway_split(np.arange(row_count), k, rng)]


class StratifiedKWay(FoldStrategy):
    """k-way partition applied within each outcome class, then merged.

    Classes are processed in order of first appearance. The fold offset is
    advanced by each class's remainder so extra rows rotate across folds and
    fold sizes stay within one of each other. Missing labels form a class.
    """

    kind = StrategyKind.STRATIFIED
    requires_outcome = True

    def split(self, row_count, k, outcome, rng):
        if outcome is None:
            raise PolicyError("Stratified k-way requires an outcome.")
        codes, _ = pd.factorize(pd.Series(outcome), use_na_sentinel=False)

        parts: List[List[np.ndarray]] = [[] for _ in range(k)]
        offset = 0
        for code in range(int(codes.max()) + 1 if codes.size else 0):
            members = np.flatnonzero(codes == code)
            for fold, chunk in enumerate(kway_split(members, k, rng, offset=offset)):
                parts[fold].append(chunk)
            offset = (offset + members.size % k) % k

        return [np.sort(np.concatenate(p)) if p else np.empty(0, dtype=int) for p in parts]


_BUILTIN = {
    StrategyKind.PLAIN: PlainKWay,
    StrategyKind.STRATIFIED: StratifiedKWay,
}


def resolve_strategy(strategy: Union[str, StrategyKind, FoldStrategy]) -> FoldStrategy:
    """Turn ``"plain"``, ``"stratified"`` or a :class:`FoldStrategy` into a strategy object."""
    if isinstance(strategy, FoldStrategy):
        return strategy
    try:
        kind = StrategyKind(strategy)
    except ValueError:
        raise PolicyError(
            f"Unknown fold strategy {strategy!r}. Expected one of "
            f"{[k.value for k in StrategyKind]} or a FoldStrategy instance."
        ) from None
    if kind is StrategyKind.CUSTOM:
        raise PolicyError("A custom strategy must be passed as a FoldStrategy instance.")
    return _BUILTIN[kind]()


__all__ = [
    "StrategyKind",
    "FoldStrategy",
    "PlainKWay",
    "StratifiedKWay",
    "kway_split",
    "resolve_strategy",
]
