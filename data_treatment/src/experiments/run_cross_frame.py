"""Build an outcome-aware cross frame with a configurable fold strategy.

Walkthrough
-----------
1) Load a CSV (or the synthetic rare-outcome table when ``--input`` is omitted).
2) Plan folds (plain or stratified k-way) and build the cross frame: every
   row's impact codes come from a plan fit on the other folds.
3) Fit a global plan on all rows for future data; score its variables on the
   cross frame.
4) Log fold balance so plain and stratified plans can be compared.

Outputs (under ``--output-dir``)
--------------------------------
- ``cross_frame.csv``
- ``score_frame.csv``
- ``plan.yaml``
- ``folds.csv`` and ``fold_balance.csv``
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import pandas as pd
import yaml

from data_treatment.src.data.examples import make_rare_outcome_table
from data_treatment.src.data.load import load_table
from data_treatment.src.evaluation.folds import fold_balance_summary, fold_prevalence_std
from data_treatment.src.treatment.cross_frame import CrossFrameResult, build_cross_frame
from data_treatment.src.treatment.plan import save_plan
from data_treatment.src.treatment.policy import load_policy
from data_treatment.src.utils.logging_utils import configure_logging

DEFAULT_CONFIG_PATH = Path("data_treatment/configs/treatment.yaml")
DEFAULT_OUTPUT_DIR = Path("data_treatment/outputs/cross_frame")


@dataclass
class CrossFrameConfig:
    """Fold settings read from the ``cross_frame`` block of the YAML config."""

    k: int = 5
    strategy: str = "stratified"
    seed: Optional[int] = 2018
    n_jobs: int = 1


def load_cross_frame_config(config_path: Path, logger) -> CrossFrameConfig:
    if not config_path.is_file():
        logger.warning("Config not found at %s; using default fold settings.", config_path)
        return CrossFrameConfig()

    cfg_dict = yaml.safe_load(config_path.read_text()) or {}
    block = cfg_dict.get("cross_frame", {}) or {}
    valid = {f.name for f in fields(CrossFrameConfig)}
    kwargs: Dict[str, Any] = {k: v for k, v in block.items() if k in valid}
    return CrossFrameConfig(**kwargs)


def _as_bool(x: str) -> Optional[bool]:
    s = x.strip().lower()
    if s in {"1", "true", "t", "yes", "y"}:
        return True
    if s in {"0", "false", "f", "no", "n"}:
        return False
    return None


def coerce_target(outcome: pd.Series, raw: str) -> Any:
    """Convert a CLI target string to the outcome column's value type."""
    if pd.api.types.is_bool_dtype(outcome):
        value = _as_bool(raw)
        if value is None:
            raise ValueError(f"Cannot read {raw!r} as a boolean outcome target.")
        return value
    if pd.api.types.is_numeric_dtype(outcome):
        number = float(raw)
        return int(number) if number.is_integer() else number
    return raw


def write_outputs(result: CrossFrameResult, outcome: pd.Series, target: Any, output_dir: Path) -> Dict[str, Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "cross_frame": output_dir / "cross_frame.csv",
        "score_frame": output_dir / "score_frame.csv",
        "plan": output_dir / "plan.yaml",
        "folds": output_dir / "folds.csv",
        "fold_balance": output_dir / "fold_balance.csv",
    }
    result.cross_frame.to_csv(paths["cross_frame"], index=False)
    result.plan.score_frame.to_frame().to_csv(paths["score_frame"], index=False)
    save_plan(result.plan, paths["plan"])
    result.folds.to_frame().to_csv(paths["folds"], index=False)
    fold_balance_summary(result.folds, outcome.to_numpy(), target).to_csv(paths["fold_balance"], index=False)
    return paths


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build an outcome-aware cross frame.")
    parser.add_argument("--input", type=Path, default=None, help="CSV table (default: synthetic example)")
    parser.add_argument("--outcome", type=str, default="y", help="Outcome column (default: y)")
    parser.add_argument("--target", type=str, default="true", help="Outcome value counted as positive")
    parser.add_argument("--columns", nargs="*", default=None, help="Columns to treat (default: all but outcome)")
    parser.add_argument("--k", type=int, default=None, help="Number of folds (overrides YAML)")
    parser.add_argument(
        "--strategy",
        type=str,
        default=None,
        choices=["plain", "stratified"],
        help="Fold strategy (overrides YAML)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Fold seed (overrides YAML)")
    parser.add_argument("--n-jobs", type=int, default=None, help="Folds processed concurrently (overrides YAML)")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"YAML config (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR})",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    logger = configure_logging()
    args = _parse_args(argv)

    if args.input is None:
        df = make_rare_outcome_table()
        logger.info("Using synthetic rare-outcome table (%d rows).", len(df))
    else:
        df = load_table(args.input)
        logger.info("Loaded %s: %d rows x %d columns", args.input, df.shape[0], df.shape[1])

    if args.outcome not in df.columns:
        raise SystemExit(f"Outcome column {args.outcome!r} not found; columns: {list(df.columns)}")

    cfg = load_cross_frame_config(args.config, logger)
    k = cfg.k if args.k is None else args.k
    strategy = cfg.strategy if args.strategy is None else args.strategy
    seed = cfg.seed if args.seed is None else args.seed
    n_jobs = cfg.n_jobs if args.n_jobs is None else args.n_jobs

    policy = load_policy(args.config)
    target = coerce_target(df[args.outcome], args.target)
    columns = args.columns or [c for c in df.columns if c != args.outcome]

    result = build_cross_frame(
        df,
        columns,
        args.outcome,
        target,
        k=k,
        strategy=strategy,
        policy=policy,
        seed=seed,
        n_jobs=n_jobs,
    )

    logger.info(
        "Fold prevalence std (%s, k=%d): %.4f",
        strategy,
        k,
        fold_prevalence_std(result.folds, df[args.outcome].to_numpy(), target),
    )
    logger.info("Score frame:\n%s", result.plan.score_frame.to_frame().to_string(index=False))

    paths = write_outputs(result, df[args.outcome], target, args.output_dir)
    for name, path in paths.items():
        logger.info("Saved %s to %s", name, path)


if __name__ == "__main__":
    main()
