"""Per-item outcomes of file actions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class OutcomeStatus(str, Enum):
    """Result category of a single file action."""

    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """Outcome of applying one action to one source path.

    Attributes:
        status: Whether the action succeeded, was skipped, or failed.
        source: Path the action was applied to.
        destination: Resulting path for successful copies and moves.
        reason: Human readable explanation for skipped items.
        error: Exception raised by a failed action.
    """

    status: OutcomeStatus
    source: Path
    destination: Optional[Path] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, source: Path, destination: Optional[Path] = None) -> "ActionOutcome":
        return cls(OutcomeStatus.OK, source, destination=destination)

    @classmethod
    def skipped(cls, source: Path, reason: str) -> "ActionOutcome":
        return cls(OutcomeStatus.SKIPPED, source, reason=reason)

    @classmethod
    def failed(cls, source: Path, error: Exception) -> "ActionOutcome":
        return cls(OutcomeStatus.FAILED, source, error=error)


__all__ = ["ActionOutcome", "OutcomeStatus"]
