"""Random seed helpers for reproducible fold plans and example data.

Randomness in this package is confined to two places:
- shuffling rows into cross-validation folds,
- generating the synthetic walkthrough tables.

Both draw from a dedicated :class:`numpy.random.Generator` created by
:func:`reproducible_numpy_rng`, so a fixed seed always reproduces the same
partition without touching global RNG state. :func:`set_global_seed` is for
scripts that also call third-party code relying on the global RNGs
(e.g. scikit-learn estimators without ``random_state``).
"""

from __future__ import annotations

import os
import random
from typing import Optional

import numpy as np


def reproducible_numpy_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Return a dedicated NumPy RNG (``seed=None`` draws fresh OS entropy)."""
    return np.random.default_rng(seed)


def set_global_seed(seed: int = 42) -> None:
    """Seed Python's ``random``, NumPy's legacy global RNG and ``PYTHONHASHSEED``."""
    os.environ["PYTHONHASHSEED"] = str(int(seed))
    random.seed(int(seed))
    np.random.seed(int(seed))


__all__ = ["reproducible_numpy_rng", "set_global_seed"]
