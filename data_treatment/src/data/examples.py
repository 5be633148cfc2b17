"""Synthetic tables for the walkthrough examples.

- :func:`make_messy_table`: mixed numeric / categorical data with missing
  values, a rare level and a constant column (unsupervised treatment).
- :func:`make_rare_outcome_table`: a rare binary outcome driven by one
  numeric and one high-cardinality categorical column, for comparing plain
  and stratified cross frames.

Both are deterministic for a given seed.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from ..utils.seed_utils import reproducible_numpy_rng


def make_messy_table(n_rows: int = 200, seed: Optional[int] = 2018) -> pd.DataFrame:
    """Table with NaNs, categorical levels (one rare) and a constant column."""
    rng = reproducible_numpy_rng(seed)

    x = rng.normal(loc=10.0, scale=3.0, size=n_rows)
    x[rng.random(n_rows) < 0.1] = np.nan

    w = rng.uniform(0.0, 1.0, size=n_rows)

    colour = rng.choice(["red", "green", "blue", "violet"], size=n_rows, p=[0.5, 0.3, 0.19, 0.01]).astype(object)
    colour[rng.random(n_rows) < 0.05] = None

    return pd.DataFrame(
        {
            "x": x,
            "w": w,
            "colour": colour,
            "const": np.ones(n_rows),
        }
    )


def make_rare_outcome_table(
    n_rows: int = 500,
    prevalence: float = 0.1,
    n_levels: int = 25,
    seed: Optional[int] = 2018,
) -> pd.DataFrame:
    """Binary outcome ``y`` (bool) with roughly ``prevalence`` positives.

    ``zip`` is a high-cardinality categorical whose levels shift the outcome
    rate; ``x`` is a numeric signal with some missing values; ``noise`` is an
    unrelated categorical.
    """
    if not (0.0 < prevalence < 1.0):
        raise ValueError(f"prevalence must be in (0, 1), got {prevalence}.")
    rng = reproducible_numpy_rng(seed)

    levels = np.array([f"z{i:02d}" for i in range(n_levels)], dtype=object)
    zip_code = rng.choice(levels, size=n_rows)
    level_effect = dict(zip(levels, rng.normal(0.0, 1.0, size=n_levels)))

    x = rng.normal(size=n_rows)
    base = np.log(prevalence / (1.0 - prevalence))
    logit = base + 0.8 * x + np.array([level_effect[z] for z in zip_code])
    y = rng.random(n_rows) < 1.0 / (1.0 + np.exp(-logit))

    x_obs = x.copy()
    x_obs[rng.random(n_rows) < 0.05] = np.nan

    return pd.DataFrame(
        {
            "x": x_obs,
            "zip": zip_code,
            "noise": rng.choice(["a", "b", "c"], size=n_rows).astype(object),
            "y": y,
        }
    )


__all__ = ["make_messy_table", "make_rare_outcome_table"]
