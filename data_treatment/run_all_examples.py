"""Run both treatment walkthroughs end to end.

This launcher orchestrates:
1) Unsupervised treatment of a messy table (missing values, categorical
   levels, a constant column), followed by K-Means on the treated frame.
2) Outcome-aware cross frames on a rare-outcome table under plain and
   stratified fold plans, followed by a logistic regression scored on a
   held-out split treated with the global plan.
3) The CLI experiment scripts (``run_design`` / ``run_cross_frame``) with
   their default settings.

Usage
-----
From the repository root:

    python data_treatment/run_all_examples.py

Outputs are written to:
- ``data_treatment/outputs/tables``
- ``data_treatment/outputs/design`` and ``data_treatment/outputs/cross_frame``
- ``data_treatment/outputs/logs/run_all.log`` and ``data_treatment.log``
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Make imports & paths robust to the current working directory.
# ---------------------------------------------------------------------------

import os
import sys
from pathlib import Path
from typing import Optional, Sequence

PROJECT_ROOT = Path(__file__).resolve().parent
REPO_ROOT = PROJECT_ROOT.parent

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# ---------------------------------------------------------------------------
# Standard imports
# ---------------------------------------------------------------------------

import argparse

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import roc_auc_score
from sklearn.model_selection import train_test_split

from data_treatment.src.data.examples import make_messy_table, make_rare_outcome_table
from data_treatment.src.evaluation.folds import fold_prevalence_std
from data_treatment.src.experiments import run_cross_frame, run_design
from data_treatment.src.treatment import (
    CAT_B,
    TreatmentPolicy,
    apply,
    build_cross_frame,
    design,
    load_policy,
)
from data_treatment.src.utils import configure_logging, set_global_seed

OUTPUT_DIR = PROJECT_ROOT / "outputs"
TABLE_DIR = OUTPUT_DIR / "tables"
LOG_DIR = OUTPUT_DIR / "logs"

DEFAULT_CONFIG = PROJECT_ROOT / "configs" / "treatment.yaml"


def _ensure_dirs() -> None:
    for d in [OUTPUT_DIR, TABLE_DIR, LOG_DIR]:
        d.mkdir(parents=True, exist_ok=True)


# ---------------------------------------------------------------------------
# Walkthrough 1: unsupervised treatment
# ---------------------------------------------------------------------------


def unsupervised_walkthrough(logger, policy: TreatmentPolicy, *, seed: int) -> pd.DataFrame:
    """Design on a messy table, apply to new rows, cluster the treated frame."""
    train = make_messy_table(n_rows=200, seed=seed)
    plan = design(train, ["x", "w", "colour", "const"], policy)
    logger.info("Score frame:\n%s", plan.score_frame.to_frame().to_string(index=False))
    logger.info("Dropped constant columns: %s", plan.dropped_columns)

    treated = apply(plan, train)
    logger.info("Treated frame: %d rows x %d columns, any NaN: %s", *treated.shape, treated.isna().any().any())

    # New data: unseen level and missing values are handled by the plan.
    fresh = pd.DataFrame({"x": [np.nan, 12.0], "w": [0.5, 0.1], "colour": ["ultraviolet", None], "const": [1.0, 1.0]})
    logger.info("Treated new rows:\n%s", apply(plan, fresh).to_string())

    km = KMeans(n_clusters=3, random_state=seed, n_init=10)
    clusters = km.fit_predict(treated)
    sizes = pd.Series(clusters).value_counts().sort_index()
    logger.info("K-Means cluster sizes on treated frame: %s", sizes.to_dict())

    out = plan.score_frame.to_frame()
    out.to_csv(TABLE_DIR / "unsupervised_score_frame.csv", index=False)
    return out


# ---------------------------------------------------------------------------
# Walkthrough 2: cross frames with custom fold plans
# ---------------------------------------------------------------------------


def cross_frame_walkthrough(logger, policy: TreatmentPolicy, *, seed: int, k: int = 5) -> pd.DataFrame:
    """Compare plain vs. stratified fold plans and fit a model on the cross frame."""
    data = make_rare_outcome_table(n_rows=1000, prevalence=0.1, seed=seed)
    train, test = train_test_split(data, test_size=0.3, random_state=seed, stratify=data["y"])
    train = train.reset_index(drop=True)
    test = test.reset_index(drop=True)
    columns = ["x", "zip", "noise"]

    rows = []
    for strategy in ("plain", "stratified"):
        result = build_cross_frame(train, columns, "y", True, k=k, strategy=strategy, policy=policy, seed=seed)
        variables = result.plan.new_variable_names
        score_frame = result.plan.score_frame
        impact = score_frame.select(score_frame.variables_of(CAT_B)).to_frame()
        logger.info("%s folds, impact-coded variables:\n%s", strategy, impact.to_string(index=False))

        clf = LogisticRegression(max_iter=1000)
        clf.fit(result.cross_frame[variables], result.cross_frame["y"])
        prob = clf.predict_proba(apply(result.plan, test)[variables])[:, 1]
        auc = float(roc_auc_score(test["y"], prob))

        spread = fold_prevalence_std(result.folds, train["y"].to_numpy(), True)
        logger.info("%s folds: prevalence std=%.4f, test AUC=%.3f", strategy, spread, auc)
        rows.append({"strategy": strategy, "k": k, "fold_prevalence_std": spread, "test_auc": auc})

    out = pd.DataFrame(rows)
    out.to_csv(TABLE_DIR / "cross_frame_strategies.csv", index=False)
    return out


# ---------------------------------------------------------------------------
# Main orchestration
# ---------------------------------------------------------------------------


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the treatment walkthroughs and experiment scripts.")
    parser.add_argument("--seed", type=int, default=2018, help="Global random seed (default: 2018)")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="YAML treatment config")
    parser.add_argument("--skip-scripts", action="store_true", help="Skip the CLI experiment scripts")
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue even if a step fails (default: stop on first failure)",
    )
    return parser.parse_args(argv)


def _run_step(logger, name: str, fn, *, keep_going: bool) -> bool:
    logger.info("===== Running: %s =====", name)
    try:
        fn()
        logger.info("Completed: %s", name)
        return True
    except Exception as exc:  # pragma: no cover
        logger.exception("%s failed: %s", name, exc)

    if keep_going:
        logger.warning("Continuing because --keep-going is set.")
        return False

    raise RuntimeError(f"Step '{name}' failed")


def main(argv: Optional[Sequence[str]] = None) -> None:
    _ensure_dirs()

    # Experiment scripts resolve their default paths relative to the repo root.
    os.chdir(REPO_ROOT)

    # Library records (designer, cross frame) go to their own log next to run_all.log.
    configure_logging(log_file=LOG_DIR)
    logger = configure_logging(log_file=LOG_DIR / "run_all.log", logger_name="run_all")
    args = _parse_args(argv)
    set_global_seed(args.seed)

    policy = load_policy(args.config)

    _run_step(
        logger,
        "Unsupervised walkthrough",
        lambda: unsupervised_walkthrough(logger, policy, seed=args.seed),
        keep_going=args.keep_going,
    )
    _run_step(
        logger,
        "Cross-frame walkthrough",
        lambda: cross_frame_walkthrough(logger, policy, seed=args.seed),
        keep_going=args.keep_going,
    )

    if not args.skip_scripts:
        _run_step(logger, "run_design", lambda: run_design([]), keep_going=args.keep_going)
        _run_step(logger, "run_cross_frame", lambda: run_cross_frame([]), keep_going=args.keep_going)

    logger.info("All done.")


if __name__ == "__main__":
    main()
