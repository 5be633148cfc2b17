"""Diagnostics for fold plans."""

from __future__ import annotations

from .folds import fold_balance_summary, fold_prevalence, fold_prevalence_std

__all__ = ["fold_prevalence", "fold_prevalence_std", "fold_balance_summary"]
