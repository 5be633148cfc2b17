"""Table loading helpers for the CLI scripts.

CSV exports arrive with different delimiters (comma, tab, semicolon). The
loader tries plain :func:`pandas.read_csv` first and falls back to delimiter
sniffing when the parse looks collapsed (fewer columns than expected).

Missing values are left to pandas' default NA handling so that empty cells
and ``NA`` strings become real missing values before treatment design.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd
from pandas.errors import ParserError


def load_table(
    path: Union[str, Path],
    *,
    min_expected_columns: int = 2,
    categorical_columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Load a CSV file with robust delimiter handling.

    Parameters
    ----------
    path:
        CSV file to read.
    min_expected_columns:
        If the first parse yields fewer columns, retry with delimiter sniffing.
    categorical_columns:
        Columns to force to string dtype (e.g. numeric codes that should be
        treated as levels rather than numbers).
    """
    csv_path = Path(path)
    if not csv_path.is_file():
        raise FileNotFoundError(f"Expected a CSV table at {csv_path}.")

    try:
        df: Optional[pd.DataFrame] = pd.read_csv(csv_path)
    except (ParserError, ValueError):
        df = None

    if df is None or df.shape[1] < min_expected_columns:
        try:
            df = pd.read_csv(csv_path, sep=None, engine="python")
        except ParserError as exc:
            raise ValueError(f"Failed to parse {csv_path} with automatic delimiter detection.") from exc

    if df.shape[1] < min_expected_columns:
        raise ValueError(
            f"Parsed {csv_path} has only {df.shape[1]} columns; expected at least {min_expected_columns}."
        )

    for col in categorical_columns or ():
        if col not in df.columns:
            raise KeyError(f"Column {col!r} not found in {csv_path}.")
        df[col] = df[col].astype(str).where(df[col].notna(), None)

    return df


__all__ = ["load_table"]
