"""Background execution of rules."""

from .service import ExecutionFailure, PassReport, RuleScheduler

__all__ = ["ExecutionFailure", "PassReport", "RuleScheduler"]
