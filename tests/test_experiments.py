from pathlib import Path

import pandas as pd
import pytest

from data_treatment.src.experiments.run_cross_frame import (
    CrossFrameConfig,
    coerce_target,
    load_cross_frame_config,
)
from data_treatment.src.experiments.run_cross_frame import main as run_cross_frame
from data_treatment.src.experiments.run_design import main as run_design
from data_treatment.src.treatment.designer import design
from data_treatment.src.treatment.plan import load_plan
from data_treatment.src.utils.logging_utils import configure_logging

CONFIG = Path(__file__).resolve().parents[1] / "data_treatment" / "configs" / "treatment.yaml"


def test_run_design_writes_outputs(tmp_path: Path) -> None:
    out = tmp_path / "design"
    run_design(["--config", str(CONFIG), "--output-dir", str(out), "--seed", "3"])

    treated = pd.read_csv(out / "treated.csv")
    plan = load_plan(out / "plan.yaml")
    assert list(treated.columns) == plan.new_variable_names
    assert "const" in plan.dropped_columns
    assert pd.read_csv(out / "score_frame.csv")["variable_name"].tolist() == plan.new_variable_names


def test_run_cross_frame_writes_outputs(tmp_path: Path) -> None:
    out = tmp_path / "cross"
    run_cross_frame(["--config", str(CONFIG), "--output-dir", str(out), "--k", "3", "--strategy", "plain"])

    cross = pd.read_csv(out / "cross_frame.csv")
    plan = load_plan(out / "plan.yaml")
    assert list(cross.columns) == plan.new_variable_names + ["y"]
    balance = pd.read_csv(out / "fold_balance.csv")
    assert len(balance) == 3
    assert balance["n_application"].sum() == len(cross)
    assert pd.read_csv(out / "folds.csv")["fold"].nunique() == 3


def test_cross_frame_config(tmp_path: Path) -> None:
    logger = configure_logging()
    assert load_cross_frame_config(tmp_path / "nope.yaml", logger) == CrossFrameConfig()

    assert load_cross_frame_config(CONFIG, logger) == CrossFrameConfig(k=5, strategy="stratified", seed=2018, n_jobs=1)


def test_coerce_target() -> None:
    assert coerce_target(pd.Series([True, False]), "yes") is True
    assert coerce_target(pd.Series([0, 1]), "1") == 1
    assert coerce_target(pd.Series([0.5, 1.5]), "1.5") == 1.5
    assert coerce_target(pd.Series(["a", "b"]), "b") == "b"
    with pytest.raises(ValueError):
        coerce_target(pd.Series([True, False]), "perhaps")


def test_package_log_file_receives_library_records(tmp_path: Path) -> None:
    configure_logging(log_file=tmp_path)
    design(pd.DataFrame({"x": [1.0, 2.0, 3.0], "k": [1, 1, 1]}), ["x", "k"])

    text = (tmp_path / "data_treatment.log").read_text(encoding="utf-8")
    assert "Dropping constant columns: ['k']" in text
