"""Design an unsupervised treatment plan on a table and apply it.

Walkthrough
-----------
1) Load a CSV (or the synthetic messy table when ``--input`` is omitted).
2) Design a plan on the requested columns with the YAML policy.
3) Apply the plan to the same table.
4) Write the treated table, the score frame and the plan snapshot.

Outputs (under ``--output-dir``)
--------------------------------
- ``treated.csv``
- ``score_frame.csv``
- ``plan.yaml``

Usage
-----
    python -m data_treatment.src.experiments.run_design --input data.csv --outcome y
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from data_treatment.src.data.examples import make_messy_table
from data_treatment.src.data.load import load_table
from data_treatment.src.treatment.applier import apply
from data_treatment.src.treatment.designer import design
from data_treatment.src.treatment.plan import TreatmentPlan, save_plan
from data_treatment.src.treatment.policy import load_policy
from data_treatment.src.utils.logging_utils import configure_logging

DEFAULT_CONFIG_PATH = Path("data_treatment/configs/treatment.yaml")
DEFAULT_OUTPUT_DIR = Path("data_treatment/outputs/design")


def _resolve_columns(df: pd.DataFrame, columns: Optional[List[str]], outcome: Optional[str]) -> List[str]:
    if columns:
        return list(columns)
    return [c for c in df.columns if c != outcome]


def write_outputs(plan: TreatmentPlan, treated: pd.DataFrame, output_dir: Path) -> dict:
    """Write treated table, score frame and plan; return the paths written."""
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "treated": output_dir / "treated.csv",
        "score_frame": output_dir / "score_frame.csv",
        "plan": output_dir / "plan.yaml",
    }
    treated.to_csv(paths["treated"], index=False)
    plan.score_frame.to_frame().to_csv(paths["score_frame"], index=False)
    save_plan(plan, paths["plan"])
    return paths


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Design and apply an unsupervised treatment plan.")
    parser.add_argument("--input", type=Path, default=None, help="CSV table (default: synthetic example)")
    parser.add_argument("--columns", nargs="*", default=None, help="Columns to treat (default: all but outcome)")
    parser.add_argument("--outcome", type=str, default=None, help="Outcome column to exclude from treatment")
    parser.add_argument(
        "--categorical",
        nargs="*",
        default=None,
        help="Columns to read as categorical even if they look numeric",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"YAML policy file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument("--seed", type=int, default=2018, help="Seed for the synthetic example table")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    logger = configure_logging()
    args = _parse_args(argv)

    if args.input is None:
        df = make_messy_table(seed=args.seed)
        logger.info("Using synthetic example table (%d rows).", len(df))
    else:
        df = load_table(args.input, categorical_columns=args.categorical)
        logger.info("Loaded %s: %d rows x %d columns", args.input, df.shape[0], df.shape[1])

    policy = load_policy(args.config)
    columns = _resolve_columns(df, args.columns, args.outcome)

    plan = design(df, columns, policy, outcome_column=args.outcome)
    logger.info("Plan summary: %s", plan.summary())

    treated = apply(plan, df)
    paths = write_outputs(plan, treated, args.output_dir)
    for name, path in paths.items():
        logger.info("Saved %s to %s", name, path)


if __name__ == "__main__":
    main()
