"""Variable treatment: design, apply, cross frames.

Typical unsupervised use::

    plan = design(df, ["x", "colour"], TreatmentPolicy(min_fraction=0.1))
    treated = apply(plan, new_df)
    plan.score_frame.to_frame()

Outcome-aware use (binary outcome)::

    cross_frame, plan, folds = build_cross_frame(
        df, ["x", "colour"], "y", True, k=5, strategy="stratified", seed=7
    )
"""

from __future__ import annotations

from ..errors import LeakageError, PolicyError, SchemaError, TreatmentError
from .applier import apply
from .cross_frame import CrossFrameResult, build_cross_frame, check_fold_assignment
from .designer import design
from .outcome_aware import design_outcome_aware, refit_plan, score_variables
from .plan import ColumnDescriptor, TreatmentPlan, load_plan, save_plan
from .policy import TreatmentPolicy, load_policy
from .score_frame import (
    CAT_B,
    CAT_P,
    CLEAN,
    IS_BAD,
    LEV,
    SCORE_FRAME_COLUMNS,
    ScoreFrame,
    ScoreFrameEntry,
)
from .transformer import TreatmentTransformer

__all__ = [
    # errors
    "TreatmentError",
    "SchemaError",
    "PolicyError",
    "LeakageError",
    # policy
    "TreatmentPolicy",
    "load_policy",
    # plan
    "ColumnDescriptor",
    "TreatmentPlan",
    "save_plan",
    "load_plan",
    # score frame
    "ScoreFrame",
    "ScoreFrameEntry",
    "SCORE_FRAME_COLUMNS",
    "CLEAN",
    "IS_BAD",
    "LEV",
    "CAT_P",
    "CAT_B",
    # design / apply
    "design",
    "apply",
    "design_outcome_aware",
    "refit_plan",
    "score_variables",
    "TreatmentTransformer",
    # cross frame
    "build_cross_frame",
    "check_fold_assignment",
    "CrossFrameResult",
]
