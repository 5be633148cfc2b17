from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from data_treatment.src.data.check_data import main as check_data_main
from data_treatment.src.data.examples import make_messy_table, make_rare_outcome_table
from data_treatment.src.data.load import load_table
from data_treatment.src.data.schema import infer_column_kind, infer_schema, level_strings, schema_frame
from data_treatment.src.utils.seed_utils import reproducible_numpy_rng, set_global_seed


def test_column_kinds() -> None:
    df = pd.DataFrame(
        {
            "i": [1, 2],
            "f": [1.5, np.nan],
            "b": [True, False],
            "s": ["a", "b"],
            "cat": pd.Categorical([1, 2]),
        }
    )
    assert infer_schema(df) == [
        ("i", "numeric"),
        ("f", "numeric"),
        ("b", "numeric"),
        ("s", "categorical"),
        ("cat", "categorical"),
    ]
    assert infer_column_kind(df["cat"]) == "categorical"


def test_level_strings_marks_missing() -> None:
    out = level_strings(pd.Series(["a", None, 3]), "NA")
    assert out.tolist() == ["a", "NA", "3"]


def test_schema_frame() -> None:
    frame = schema_frame(make_messy_table(n_rows=50, seed=0))
    assert frame["column"].tolist() == ["x", "w", "colour", "const"]
    assert frame.loc[frame["column"] == "const", "n_distinct"].item() == 1


def test_load_table_sniffs_semicolons(tmp_path: Path) -> None:
    path = tmp_path / "table.csv"
    path.write_text("zip;x;y\n01234;1.5;1\n98765;;0\n01234;2.5;0\n")

    df = load_table(path, categorical_columns=["zip"])
    assert list(df.columns) == ["zip", "x", "y"]
    assert infer_column_kind(df["zip"]) == "categorical"
    assert df["x"].isna().sum() == 1


def test_load_table_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_table(tmp_path / "missing.csv")

    path = tmp_path / "one.csv"
    path.write_text("a,b\n1,2\n")
    with pytest.raises(KeyError):
        load_table(path, categorical_columns=["c"])


def test_check_data_cli(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    path = tmp_path / "t.csv"
    make_messy_table(n_rows=20, seed=1).to_csv(path, index=False)

    assert check_data_main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "Rows: 20" in out
    assert "const" in out

    assert check_data_main([str(tmp_path / "none.csv")]) == 1


def test_example_tables_are_seeded() -> None:
    pd.testing.assert_frame_equal(make_rare_outcome_table(seed=4), make_rare_outcome_table(seed=4))
    df = make_rare_outcome_table(n_rows=400, prevalence=0.1, seed=4)
    assert df["y"].dtype == bool
    assert 0 < df["y"].sum() < len(df)
    with pytest.raises(ValueError):
        make_rare_outcome_table(prevalence=1.0)


def test_seed_helpers() -> None:
    a = reproducible_numpy_rng(5).integers(0, 1000, size=5)
    b = reproducible_numpy_rng(5).integers(0, 1000, size=5)
    np.testing.assert_array_equal(a, b)

    set_global_seed(9)
    x = np.random.rand()
    set_global_seed(9)
    assert np.random.rand() == x
