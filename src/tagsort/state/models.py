"""Persisted documents for rules and the activity log."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, Field

from tagsort.rules import LogEntry, Rule, RuleMap


class RulesDocument(BaseModel):
    """Rules keyed by the directory they watch."""

    rules: Dict[str, List[Rule]] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_rule_map(cls, rule_map: RuleMap) -> "RulesDocument":
        return cls(rules={str(directory): list(rules) for directory, rules in rule_map.items()})

    def to_rule_map(self) -> RuleMap:
        return {Path(directory): list(rules) for directory, rules in self.rules.items()}


class LogDocument(BaseModel):
    """Activity log entries in chronological order."""

    entries: List[LogEntry] = Field(default_factory=list)


__all__ = ["LogDocument", "LogEntry", "RulesDocument"]
