"""Score frame: metadata describing every synthetic variable a plan produces.

One :class:`ScoreFrameEntry` per synthetic variable. Unsupervised plans leave
``association_strength`` and ``significance`` empty; outcome-aware plans fill
them in after the cross frame has been scored.

The export format (:meth:`ScoreFrame.to_frame`) is a plain DataFrame with the
columns ``variable_name, origin_column, kind, association_strength,
significance`` so it can be written to CSV or shown as a table.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from ..errors import SchemaError

# Variable kinds
CLEAN = "clean"
IS_BAD = "isBAD"
LEV = "lev"
CAT_P = "catP"
CAT_B = "catB"

UNSUPERVISED_KINDS: Tuple[str, ...] = (CLEAN, IS_BAD, LEV, CAT_P)
OUTCOME_AWARE_KINDS: Tuple[str, ...] = UNSUPERVISED_KINDS + (CAT_B,)

SCORE_FRAME_COLUMNS: List[str] = [
    "variable_name",
    "origin_column",
    "kind",
    "association_strength",
    "significance",
]


def plain_value(x: Any) -> Any:
    """Convert numpy scalars to builtin Python values for YAML output."""
    if hasattr(x, "item") and not isinstance(x, (str, bytes)):
        try:
            return x.item()
        except (TypeError, ValueError):
            return x
    return x


@dataclass(frozen=True)
class ScoreFrameEntry:
    """A single synthetic variable and where it came from."""

    variable_name: str
    origin_column: Any
    kind: str
    association_strength: Optional[float] = None
    significance: Optional[float] = None
    # Level encoded by a ``lev`` indicator; ``None`` for every other kind.
    level: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variable_name": self.variable_name,
            "origin_column": plain_value(self.origin_column),
            "kind": self.kind,
            "association_strength": self.association_strength,
            "significance": self.significance,
            "level": self.level,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScoreFrameEntry":
        def _opt_float(x: Any) -> Optional[float]:
            return None if x is None else float(x)

        return cls(
            variable_name=str(data["variable_name"]),
            origin_column=data["origin_column"],
            kind=str(data["kind"]),
            association_strength=_opt_float(data.get("association_strength")),
            significance=_opt_float(data.get("significance")),
            level=None if data.get("level") is None else str(data["level"]),
        )


class ScoreFrame:
    """Ordered, read-only collection of :class:`ScoreFrameEntry`.

    Variable names are unique; the order of entries is the column order of
    every treated table produced from the owning plan.
    """

    def __init__(self, entries: Iterable[ScoreFrameEntry] = ()):
        self._entries: Tuple[ScoreFrameEntry, ...] = tuple(entries)
        seen: set[str] = set()
        for entry in self._entries:
            if entry.variable_name in seen:
                raise ValueError(f"Duplicate synthetic variable name: {entry.variable_name!r}")
            seen.add(entry.variable_name)
        self._by_name = {e.variable_name: e for e in self._entries}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ScoreFrameEntry]:
        return iter(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __getitem__(self, name: str) -> ScoreFrameEntry:
        try:
            return self._by_name[name]
        except KeyError:
            raise SchemaError(f"Unknown synthetic variable: {name!r}") from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScoreFrame):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ScoreFrame(n_variables={len(self._entries)})"

    @property
    def variable_names(self) -> List[str]:
        return [e.variable_name for e in self._entries]

    @property
    def origin_columns(self) -> List[str]:
        """Distinct originating columns, in first-appearance order."""
        return list(dict.fromkeys(e.origin_column for e in self._entries))

    def variables_of(self, kind: str) -> List[str]:
        return [e.variable_name for e in self._entries if e.kind == kind]

    def for_column(self, column: str) -> List[ScoreFrameEntry]:
        return [e for e in self._entries if e.origin_column == column]

    def select(self, names: Sequence[str]) -> "ScoreFrame":
        """Sub-frame restricted to ``names`` (kept in score-frame order)."""
        wanted = set(names)
        unknown = [n for n in names if n not in self._by_name]
        if unknown:
            raise SchemaError(f"Unknown synthetic variables requested: {unknown}")
        return ScoreFrame(e for e in self._entries if e.variable_name in wanted)

    def with_scores(self, scores: Mapping[str, Tuple[float, float]]) -> "ScoreFrame":
        """Return a copy with ``(association_strength, significance)`` filled in."""
        updated = []
        for entry in self._entries:
            if entry.variable_name in scores:
                strength, sig = scores[entry.variable_name]
                entry = replace(entry, association_strength=float(strength), significance=float(sig))
            updated.append(entry)
        return ScoreFrame(updated)

    def to_frame(self) -> pd.DataFrame:
        """Export as a DataFrame with the standard score-frame columns."""
        rows = [{k: v for k, v in e.to_dict().items() if k in SCORE_FRAME_COLUMNS} for e in self._entries]
        return pd.DataFrame(rows, columns=SCORE_FRAME_COLUMNS)

    def to_records(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "ScoreFrame":
        return cls(ScoreFrameEntry.from_dict(r) for r in records)


__all__ = [
    "CLEAN",
    "IS_BAD",
    "LEV",
    "CAT_P",
    "CAT_B",
    "UNSUPERVISED_KINDS",
    "OUTCOME_AWARE_KINDS",
    "SCORE_FRAME_COLUMNS",
    "plain_value",
    "ScoreFrameEntry",
    "ScoreFrame",
]
