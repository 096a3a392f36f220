"""File actions applied to selected items."""

from .executor import FileActionExecutor
from .models import ActionOutcome, OutcomeStatus

__all__ = ["ActionOutcome", "FileActionExecutor", "OutcomeStatus"]
