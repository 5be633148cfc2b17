"""Table loading, schema inference and example data.

- :mod:`.schema`: the single explicit numeric/categorical inference pass
  used by the designer;
- :mod:`.load`: CSV loading for the CLI scripts;
- :mod:`.examples`: deterministic synthetic tables for the walkthroughs.
"""

from __future__ import annotations

from .examples import make_messy_table, make_rare_outcome_table
from .load import load_table
from .schema import (
    CATEGORICAL,
    NUMERIC,
    infer_column_kind,
    infer_schema,
    schema_frame,
)

__all__ = [
    "load_table",
    "infer_column_kind",
    "infer_schema",
    "schema_frame",
    "NUMERIC",
    "CATEGORICAL",
    "make_messy_table",
    "make_rare_outcome_table",
]
