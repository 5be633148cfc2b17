"""Source package for the data_treatment project.

Package layout
--------------
- data: table loading, schema inference, example tables
- treatment: treatment design / apply, outcome-aware plans, cross frames
- cv: cross-validation fold planning (plain / stratified / custom)
- evaluation: fold balance diagnostics
- experiments: runnable scripts (design, cross frame)
- utils: logging and seeds

The ``__init__`` stays lightweight; import from the subpackages.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    "data",
    "treatment",
    "cv",
    "evaluation",
    "experiments",
    "utils",
]
