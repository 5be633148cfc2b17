"""Error taxonomy for treatment design, application and cross-frame building.

All errors derive from :class:`TreatmentError`. Each one also subclasses the
built-in exception callers would otherwise catch for the same condition
(``KeyError`` for a missing column, ``ValueError`` for a bad setting), so
existing ``except KeyError`` / ``except ValueError`` blocks keep working.

Constant or degenerate input columns are *not* errors: they are dropped
silently by the designer.
"""

from __future__ import annotations


class TreatmentError(Exception):
    """Base class for every error raised by this package."""


class SchemaError(TreatmentError, KeyError):
    """A referenced column is absent, or its kind changed since design time."""

    def __str__(self) -> str:
        # KeyError.__str__ wraps the message in quotes.
        return str(self.args[0]) if self.args else ""


class PolicyError(TreatmentError, ValueError):
    """Invalid configuration: fraction out of range, unknown kind, bad fold count."""


class LeakageError(TreatmentError, RuntimeError):
    """Cross-frame construction would reuse a row's own outcome for that row.

    This indicates a construction bug, not bad user input.
    """


__all__ = ["TreatmentError", "SchemaError", "PolicyError", "LeakageError"]
