"""CLI utility to show how a CSV table will be read by the designer.

Run from the project root:

.. code-block:: bash

    python -m data_treatment.src.data.check_data path/to/table.csv

Prints the inferred kind (numeric / categorical), missing count and number of
distinct values per column. The file is never modified.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from .load import load_table
from .schema import schema_frame


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show the inferred treatment schema of a CSV table.")
    parser.add_argument("csv", type=Path, help="CSV file to inspect")
    parser.add_argument(
        "--categorical",
        nargs="*",
        default=None,
        help="Columns to read as categorical even if they look numeric",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    if not args.csv.is_file():
        print(f"Table not found: {args.csv}")
        return 1

    try:
        df = load_table(args.csv, min_expected_columns=1, categorical_columns=args.categorical)
    except (ValueError, KeyError) as exc:
        print(f"Failed to load table: {exc}")
        return 1

    print(f"Rows: {df.shape[0]} | Columns: {df.shape[1]}")
    summary = schema_frame(df)
    print(summary.to_string(index=False))

    constant = summary.loc[summary["n_distinct"] <= 1, "column"].tolist()
    if constant:
        print(f"Constant columns (will be dropped by design): {', '.join(map(str, constant))}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
