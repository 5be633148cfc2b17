import numpy as np
import pytest
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline

from data_treatment.src.data.examples import make_messy_table, make_rare_outcome_table
from data_treatment.src.treatment.applier import apply
from data_treatment.src.treatment.designer import design
from data_treatment.src.treatment.policy import TreatmentPolicy
from data_treatment.src.treatment.transformer import TreatmentTransformer


def test_transformer_matches_design_and_apply() -> None:
    df = make_messy_table(n_rows=100, seed=3)
    policy = TreatmentPolicy(min_fraction=0.05)

    transformer = TreatmentTransformer(columns=["x", "colour"], policy=policy).fit(df)
    expected = apply(design(df, ["x", "colour"], policy), df)

    np.testing.assert_array_equal(transformer.get_feature_names_out(), expected.columns.to_numpy())
    assert transformer.n_features_in_ == df.shape[1]
    np.testing.assert_array_equal(transformer.transform(df).to_numpy(), expected.to_numpy())


def test_transformer_in_pipeline() -> None:
    df = make_rare_outcome_table(n_rows=200, seed=5)
    X, y = df.drop(columns=["y"]), df["y"]

    pipe = Pipeline([("treat", TreatmentTransformer()), ("model", LogisticRegression(max_iter=500))])
    pipe.fit(X, y)
    proba = pipe.predict_proba(X)[:, 1]

    assert proba.shape == (len(df),)
    assert np.all((proba >= 0.0) & (proba <= 1.0))


def test_transformer_must_be_fitted() -> None:
    transformer = TreatmentTransformer()
    with pytest.raises(RuntimeError):
        transformer.transform(make_messy_table(n_rows=10))
    with pytest.raises(RuntimeError):
        transformer.get_feature_names_out()


def test_transformer_params_round_trip() -> None:
    policy = TreatmentPolicy(min_fraction=0.1)
    params = TreatmentTransformer(columns=["x"], policy=policy).get_params()
    assert params == {"columns": ["x"], "policy": policy}
