"""Cross-validation fold planning (plain, stratified, custom strategies)."""

from __future__ import annotations

from .planner import FoldAssignment, FoldRecord, plan_folds, validate_partition
from .strategies import FoldStrategy, PlainKWay, StrategyKind, StratifiedKWay, kway_split, resolve_strategy

__all__ = [
    "plan_folds",
    "validate_partition",
    "FoldAssignment",
    "FoldRecord",
    "FoldStrategy",
    "StrategyKind",
    "PlainKWay",
    "StratifiedKWay",
    "kway_split",
    "resolve_strategy",
]
