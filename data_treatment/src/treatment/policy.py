"""Explicit, immutable treatment policy.

The policy replaces library-wide mutable defaults: every setting the designer
needs is passed in as a :class:`TreatmentPolicy` value. The only defaults are
the literal constants defined below.

YAML layout (``configs/treatment.yaml``)::

    treatment:
      min_fraction: 0.02
      code_restriction: [clean, isBAD, lev]
      imputation: mean            # mean | median | <number>
      imputation_overrides:
        income: median
      collar_prob: 0.0
      smoothing: 0.5
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

import yaml

from ..errors import PolicyError
from .score_frame import OUTCOME_AWARE_KINDS, UNSUPERVISED_KINDS

logger = logging.getLogger(__name__)

DEFAULT_MIN_FRACTION = 0.02
DEFAULT_IMPUTATION = "mean"
DEFAULT_SMOOTHING = 0.5
DEFAULT_MISSING_LEVEL = "NA"

IMPUTATION_RULES = ("mean", "median")

ImputationRule = Union[str, float]


def _is_number(x: Any) -> bool:
    return isinstance(x, numbers.Real) and not isinstance(x, bool)


@dataclass(frozen=True)
class TreatmentPolicy:
    """Settings for :func:`~data_treatment.src.treatment.designer.design`.

    Parameters
    ----------
    min_fraction:
        Minimum training prevalence for a categorical level to get its own
        ``lev`` indicator. Compared as ``prevalence >= min_fraction``.
    code_restriction:
        Optional subset of variable kinds to emit. ``None`` means all kinds.
    imputation:
        Replacement for bad numeric values: ``"mean"``, ``"median"`` or a
        constant number.
    imputation_overrides:
        Per-column imputation rules taking precedence over ``imputation``.
    collar_prob:
        If positive, clip ``clean`` values to the training quantiles
        ``[collar_prob, 1 - collar_prob]``. Must be in ``[0, 0.5)``.
    smoothing:
        Pseudo-count pulling ``catB`` level rates toward the global rate.
    missing_level:
        Preferred text for the synthetic missing level.
    """

    min_fraction: float = DEFAULT_MIN_FRACTION
    code_restriction: Optional[FrozenSet[str]] = None
    imputation: ImputationRule = DEFAULT_IMPUTATION
    imputation_overrides: Mapping[str, ImputationRule] = field(default_factory=dict)
    collar_prob: float = 0.0
    smoothing: float = DEFAULT_SMOOTHING
    missing_level: str = DEFAULT_MISSING_LEVEL

    def __post_init__(self) -> None:
        if self.code_restriction is not None and not isinstance(self.code_restriction, frozenset):
            object.__setattr__(self, "code_restriction", frozenset(self.code_restriction))
        object.__setattr__(self, "imputation_overrides", dict(self.imputation_overrides))

    def validate(self, *, outcome_aware: bool = False) -> "TreatmentPolicy":
        """Raise :class:`PolicyError` for invalid settings; return ``self`` otherwise."""
        if not _is_number(self.min_fraction) or not (0.0 <= float(self.min_fraction) <= 1.0):
            raise PolicyError(f"min_fraction must be in [0, 1], got {self.min_fraction!r}.")

        allowed = OUTCOME_AWARE_KINDS if outcome_aware else UNSUPERVISED_KINDS
        if self.code_restriction is not None:
            unknown = sorted(set(self.code_restriction) - set(allowed))
            if unknown:
                raise PolicyError(
                    f"Unknown variable kinds in code_restriction: {unknown}. Allowed: {list(allowed)}."
                )

        _check_imputation(self.imputation, "imputation")
        for col, rule in self.imputation_overrides.items():
            _check_imputation(rule, f"imputation_overrides[{col!r}]")

        if not _is_number(self.collar_prob) or not (0.0 <= float(self.collar_prob) < 0.5):
            raise PolicyError(f"collar_prob must be in [0, 0.5), got {self.collar_prob!r}.")
        if not _is_number(self.smoothing) or float(self.smoothing) < 0.0:
            raise PolicyError(f"smoothing must be >= 0, got {self.smoothing!r}.")
        if not isinstance(self.missing_level, str) or not self.missing_level:
            raise PolicyError("missing_level must be a non-empty string.")
        return self

    def allows(self, kind: str) -> bool:
        return self.code_restriction is None or kind in self.code_restriction

    def imputation_for(self, column: str) -> ImputationRule:
        return self.imputation_overrides.get(column, self.imputation)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_fraction": float(self.min_fraction),
            "code_restriction": None if self.code_restriction is None else sorted(self.code_restriction),
            "imputation": self.imputation,
            "imputation_overrides": dict(self.imputation_overrides),
            "collar_prob": float(self.collar_prob),
            "smoothing": float(self.smoothing),
            "missing_level": self.missing_level,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TreatmentPolicy":
        """Build a policy from a plain mapping, ignoring unknown keys."""
        data = dict(data or {})
        valid = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in valid}
        ignored = sorted(set(data) - valid)
        if ignored:
            logger.debug("Ignoring unknown policy keys: %s", ignored)
        if kwargs.get("code_restriction") is not None:
            kwargs["code_restriction"] = frozenset(_as_str_list(kwargs["code_restriction"]))
        if kwargs.get("imputation_overrides") is None:
            kwargs.pop("imputation_overrides", None)
        return cls(**kwargs)


def _as_str_list(x: Union[str, Iterable[Any]]) -> list[str]:
    if isinstance(x, str):
        return [x]
    return [str(v) for v in x]


def _check_imputation(rule: Any, name: str) -> None:
    if isinstance(rule, str):
        if rule not in IMPUTATION_RULES:
            raise PolicyError(f"{name} must be one of {IMPUTATION_RULES} or a number, got {rule!r}.")
        return
    if not _is_number(rule) or not math.isfinite(float(rule)):
        raise PolicyError(f"{name} must be one of {IMPUTATION_RULES} or a finite number, got {rule!r}.")


def load_policy(config_path: Union[str, Path], section: str = "treatment") -> TreatmentPolicy:
    """Load a :class:`TreatmentPolicy` from the ``section`` block of a YAML file.

    A missing file yields the default policy (with a warning). The result is
    validated before it is returned.
    """
    path = Path(config_path)
    if not path.is_file():
        logger.warning("Treatment config not found at %s; using default policy.", path)
        return TreatmentPolicy()

    cfg = yaml.safe_load(path.read_text()) or {}
    block = cfg.get(section, {}) or {}
    if not isinstance(block, Mapping):
        raise PolicyError(f"Section '{section}' in {path} must be a mapping.")
    return TreatmentPolicy.from_dict(block).validate(outcome_aware=True)


__all__ = [
    "DEFAULT_MIN_FRACTION",
    "DEFAULT_IMPUTATION",
    "DEFAULT_SMOOTHING",
    "DEFAULT_MISSING_LEVEL",
    "TreatmentPolicy",
    "load_policy",
]
