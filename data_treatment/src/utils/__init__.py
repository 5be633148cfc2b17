"""Shared helpers: logging setup and RNG seeding."""

from __future__ import annotations

from .logging_utils import DEFAULT_LOG_FORMAT, PACKAGE_LOGGER, configure_logging
from .seed_utils import reproducible_numpy_rng, set_global_seed

__all__ = [
    "configure_logging",
    "DEFAULT_LOG_FORMAT",
    "PACKAGE_LOGGER",
    "set_global_seed",
    "reproducible_numpy_rng",
]
