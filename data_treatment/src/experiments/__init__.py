"""Runnable experiment scripts.

Each script exposes ``main(argv)`` so it can be called from the launcher
(``data_treatment/run_all_examples.py``) or from the command line with
``python -m``.
"""

from __future__ import annotations

from .run_cross_frame import main as run_cross_frame
from .run_design import main as run_design

__all__ = ["run_design", "run_cross_frame"]
