"""scikit-learn adapter around :func:`design` / :func:`apply`.

:class:`TreatmentTransformer` learns an unsupervised plan in ``fit`` and
applies it in ``transform``, so a treatment plan can sit at the front of a
:class:`~sklearn.pipeline.Pipeline`. The fitted plan is exposed as ``plan_``.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin

from .applier import apply
from .designer import design
from .plan import TreatmentPlan
from .policy import TreatmentPolicy


class TreatmentTransformer(BaseEstimator, TransformerMixin):
    """Unsupervised variable treatment as an sklearn transformer.

    Parameters
    ----------
    columns:
        Columns to treat; ``None`` treats every column seen in ``fit``.
    policy:
        Treatment policy (default: :class:`TreatmentPolicy()`).
    """

    def __init__(self, columns: Optional[Sequence[Any]] = None, policy: Optional[TreatmentPolicy] = None):
        self.columns = columns
        self.policy = policy

    def fit(self, X: pd.DataFrame, y=None):
        X = self._as_frame(X)
        columns = list(X.columns) if self.columns is None else list(self.columns)
        self.plan_: TreatmentPlan = design(X, columns, self.policy)
        self.feature_names_in_ = np.asarray([str(c) for c in X.columns], dtype=object)
        self.n_features_in_ = X.shape[1]
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        if not hasattr(self, "plan_"):
            raise RuntimeError("TreatmentTransformer must be fitted before transform.")
        return apply(self.plan_, self._as_frame(X))

    def get_feature_names_out(self, input_features=None) -> np.ndarray:
        if not hasattr(self, "plan_"):
            raise RuntimeError("TreatmentTransformer must be fitted before get_feature_names_out.")
        return np.asarray(self.plan_.new_variable_names, dtype=object)

    @staticmethod
    def _as_frame(X: Any) -> pd.DataFrame:
        if isinstance(X, pd.DataFrame):
            return X
        return pd.DataFrame(X)


__all__ = ["TreatmentTransformer"]
