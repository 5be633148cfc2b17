"""Fitted treatment plans and their persistence.

A :class:`TreatmentPlan` is the artifact produced by the designer. It owns

- the ordered :class:`ColumnDescriptor` list (one per considered column),
- the :class:`~data_treatment.src.treatment.policy.TreatmentPolicy` used,
- the derived :class:`~data_treatment.src.treatment.score_frame.ScoreFrame`.

Plans are read-only after fitting and may be reused by any number of
``apply`` calls. :func:`save_plan` / :func:`load_plan` write a YAML snapshot
(descriptors + policy + score frame) so a plan can be reused across sessions.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from ..data.schema import CATEGORICAL, NUMERIC, ColumnKind
from ..errors import SchemaError
from .policy import TreatmentPolicy
from .score_frame import ScoreFrame, plain_value

PLAN_FORMAT_VERSION = 1


@dataclass(frozen=True)
class ColumnDescriptor:
    """Design-time facts about one input column.

    ``level_prevalence`` maps each observed level (including the missing-level
    sentinel) to its fraction of training rows. ``impact_codes`` is only
    populated by the outcome-aware designer.
    """

    name: Any
    kind: ColumnKind
    n_rows: int
    n_missing: int = 0
    varies: bool = True
    impute_value: Optional[float] = None
    collar: Optional[Tuple[float, float]] = None
    level_prevalence: Mapping[str, float] = field(default_factory=dict)
    missing_level: Optional[str] = None
    impact_codes: Mapping[str, float] = field(default_factory=dict)

    @property
    def is_numeric(self) -> bool:
        return self.kind == NUMERIC

    @property
    def is_categorical(self) -> bool:
        return self.kind == CATEGORICAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": plain_value(self.name),
            "kind": self.kind,
            "n_rows": int(self.n_rows),
            "n_missing": int(self.n_missing),
            "varies": bool(self.varies),
            "impute_value": None if self.impute_value is None else float(self.impute_value),
            "collar": None if self.collar is None else [float(self.collar[0]), float(self.collar[1])],
            "level_prevalence": {str(k): float(v) for k, v in self.level_prevalence.items()},
            "missing_level": self.missing_level,
            "impact_codes": {str(k): float(v) for k, v in self.impact_codes.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ColumnDescriptor":
        collar = data.get("collar")
        return cls(
            name=data["name"],
            kind=data["kind"],
            n_rows=int(data["n_rows"]),
            n_missing=int(data.get("n_missing", 0)),
            varies=bool(data.get("varies", True)),
            impute_value=None if data.get("impute_value") is None else float(data["impute_value"]),
            collar=None if collar is None else (float(collar[0]), float(collar[1])),
            level_prevalence={str(k): float(v) for k, v in (data.get("level_prevalence") or {}).items()},
            missing_level=data.get("missing_level"),
            impact_codes={str(k): float(v) for k, v in (data.get("impact_codes") or {}).items()},
        )


@dataclass(frozen=True)
class TreatmentPlan:
    """Fitted treatment plan (see module docstring)."""

    descriptors: Tuple[ColumnDescriptor, ...]
    policy: TreatmentPolicy
    score_frame: ScoreFrame
    outcome_column: Optional[str] = None
    outcome_target: Any = None
    outcome_rate: Optional[float] = None

    @property
    def is_outcome_aware(self) -> bool:
        return self.outcome_column is not None

    @property
    def columns(self) -> List[str]:
        """Every column considered at design time (including dropped ones)."""
        return [d.name for d in self.descriptors]

    @property
    def origin_columns(self) -> List[str]:
        """Columns that contribute at least one synthetic variable."""
        return self.score_frame.origin_columns

    @property
    def new_variable_names(self) -> List[str]:
        return self.score_frame.variable_names

    @property
    def dropped_columns(self) -> List[str]:
        used = set(self.origin_columns)
        return [d.name for d in self.descriptors if d.name not in used]

    def descriptor(self, column: str) -> ColumnDescriptor:
        for d in self.descriptors:
            if d.name == column:
                return d
        raise SchemaError(f"Column {column!r} is not part of this treatment plan.")

    def with_score_frame(self, score_frame: ScoreFrame) -> "TreatmentPlan":
        return replace(self, score_frame=score_frame)

    def summary(self) -> Dict[str, Any]:
        """Small dict for logging."""
        kinds: Dict[str, int] = {}
        for entry in self.score_frame:
            kinds[entry.kind] = kinds.get(entry.kind, 0) + 1
        return {
            "n_columns": len(self.descriptors),
            "n_variables": len(self.score_frame),
            "dropped": self.dropped_columns,
            "kinds": kinds,
            "outcome_aware": self.is_outcome_aware,
        }

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format_version": PLAN_FORMAT_VERSION,
            "policy": self.policy.to_dict(),
            "descriptors": [d.to_dict() for d in self.descriptors],
            "score_frame": self.score_frame.to_records(),
            "outcome_column": plain_value(self.outcome_column),
            "outcome_target": plain_value(self.outcome_target),
            "outcome_rate": None if self.outcome_rate is None else float(self.outcome_rate),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TreatmentPlan":
        version = int(data.get("format_version", PLAN_FORMAT_VERSION))
        if version != PLAN_FORMAT_VERSION:
            raise ValueError(f"Unsupported plan format version {version}; expected {PLAN_FORMAT_VERSION}.")
        rate = data.get("outcome_rate")
        return cls(
            descriptors=tuple(ColumnDescriptor.from_dict(d) for d in data.get("descriptors") or []),
            policy=TreatmentPolicy.from_dict(data.get("policy")),
            score_frame=ScoreFrame.from_records(data.get("score_frame") or []),
            outcome_column=data.get("outcome_column"),
            outcome_target=data.get("outcome_target"),
            outcome_rate=None if rate is None else float(rate),
        )


def save_plan(plan: TreatmentPlan, path: Union[str, Path]) -> Path:
    """Write a YAML snapshot of ``plan`` to ``path`` (parents are created)."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(yaml.safe_dump(plan.to_dict(), sort_keys=False), encoding="utf-8")
    return out


def load_plan(path: Union[str, Path]) -> TreatmentPlan:
    """Read a plan written by :func:`save_plan`."""
    src = Path(path)
    if not src.is_file():
        raise FileNotFoundError(f"No treatment plan at {src}.")
    data = yaml.safe_load(src.read_text(encoding="utf-8")) or {}
    return TreatmentPlan.from_dict(data)


__all__ = [
    "PLAN_FORMAT_VERSION",
    "ColumnDescriptor",
    "TreatmentPlan",
    "save_plan",
    "load_plan",
]
