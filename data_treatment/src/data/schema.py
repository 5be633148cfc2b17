"""Explicit column schema for raw tables.

The designer classifies each column once with :func:`infer_column_kind` and
records the result in its column descriptor, instead of re-inspecting dtypes
on every access.

Kinds
-----
- ``"numeric"``: bool, integer and float dtypes.
- ``"categorical"``: everything else (object, string, category, datetime...).
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Literal, Tuple

import numpy as np
import pandas as pd

ColumnKind = Literal["numeric", "categorical"]

NUMERIC: ColumnKind = "numeric"
CATEGORICAL: ColumnKind = "categorical"


def infer_column_kind(series: pd.Series) -> ColumnKind:
    """Classify a column as numeric or categorical from its dtype."""
    dtype = series.dtype
    if isinstance(dtype, pd.CategoricalDtype):
        return CATEGORICAL
    if pd.api.types.is_bool_dtype(dtype) or pd.api.types.is_numeric_dtype(dtype):
        return NUMERIC
    return CATEGORICAL


def infer_schema(df: pd.DataFrame, columns: Iterable[str] | None = None) -> List[Tuple[str, ColumnKind]]:
    """Ordered ``(name, kind)`` pairs for ``columns`` (default: all columns)."""
    cols = list(df.columns) if columns is None else list(columns)
    return [(str(c), infer_column_kind(df[c])) for c in cols]


def is_all_missing(series: pd.Series) -> bool:
    return bool(series.isna().all())


def numeric_values(values: pd.Series) -> np.ndarray:
    """Column as a float array (``NaN`` for missing entries)."""
    return pd.to_numeric(values, errors="coerce").to_numpy(dtype=float, na_value=np.nan)


def level_strings(values: pd.Series, missing_level: str) -> np.ndarray:
    """Column as an object array of level strings; missing entries -> ``missing_level``."""
    missing = values.isna().to_numpy()
    out = values.astype(object).to_numpy(copy=True)
    out[missing] = missing_level
    out[~missing] = [str(v) for v in out[~missing]]
    return out


def schema_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Tabular schema summary: kind, missing count and distinct values per column."""
    rows: List[Dict[str, object]] = []
    for name, kind in infer_schema(df):
        s = df[name]
        rows.append(
            {
                "column": name,
                "kind": kind,
                "dtype": str(s.dtype),
                "n_missing": int(s.isna().sum()),
                "n_distinct": int(s.nunique(dropna=True)),
            }
        )
    return pd.DataFrame(rows, columns=["column", "kind", "dtype", "n_missing", "n_distinct"])


__all__ = [
    "ColumnKind",
    "NUMERIC",
    "CATEGORICAL",
    "infer_column_kind",
    "infer_schema",
    "is_all_missing",
    "numeric_values",
    "level_strings",
    "schema_frame",
]
