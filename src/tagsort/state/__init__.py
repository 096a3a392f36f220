"""State persistence helpers for the tagsort CLI."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tagsort.rules import RuleMap

from .errors import StateError
from .log import ActivityLog
from .models import LogDocument, LogEntry, RulesDocument

DEFAULT_STATE_DIR = Path("~/.tagsort")
RULES_FILENAME = "rules.json"
LOG_FILENAME = "log.json"


class StateRepository:
    """Persist rules and the activity log as JSON documents in one directory."""

    def __init__(self, state_dir: Path | str = DEFAULT_STATE_DIR) -> None:
        """Initialize the repository.

        Args:
            state_dir: Directory holding ``rules.json`` and ``log.json``; ``~`` is
                expanded.
        """
        self._state_dir = Path(state_dir).expanduser()

    @property
    def state_dir(self) -> Path:
        return self._state_dir

    @property
    def rules_path(self) -> Path:
        return self._state_dir / RULES_FILENAME

    @property
    def log_path(self) -> Path:
        return self._state_dir / LOG_FILENAME

    def initialize(self) -> Path:
        """Create the state directory if needed and return it."""
        self._state_dir.mkdir(parents=True, exist_ok=True)
        return self._state_dir

    def load_rules(self) -> RuleMap:
        """Load the stored rules, or an empty map when none were saved.

        Raises:
            StateError: If ``rules.json`` cannot be read or parsed.
        """
        data = self._read(self.rules_path)
        if data is None:
            return {}
        try:
            return RulesDocument.model_validate(data).to_rule_map()
        except ValidationError as exc:
            raise StateError(f"Invalid rules data in {self.rules_path}: {exc}") from exc

    def save_rules(self, rule_map: RuleMap) -> None:
        """Persist ``rule_map``, replacing what was stored before."""
        document = RulesDocument.from_rule_map(rule_map)
        document.updated_at = datetime.now(timezone.utc)
        self._write(self.rules_path, document.model_dump(mode="json"))

    def load_log(self) -> ActivityLog:
        """Load the stored activity log, or an empty one when none was saved.

        Raises:
            StateError: If ``log.json`` cannot be read or parsed.
        """
        data = self._read(self.log_path)
        if data is None:
            return ActivityLog()
        try:
            document = LogDocument.model_validate(data)
        except ValidationError as exc:
            raise StateError(f"Invalid log data in {self.log_path}: {exc}") from exc
        return ActivityLog(document.entries)

    def save_log(self, log: ActivityLog) -> None:
        """Persist a snapshot of ``log``."""
        document = LogDocument(entries=log.entries())
        self._write(self.log_path, document.model_dump(mode="json"))

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StateError(f"Invalid JSON in {path}: {exc}") from exc
        except OSError as exc:
            raise StateError(f"Unable to read {path}: {exc}") from exc

    def _write(self, path: Path, payload: Any) -> None:
        self.initialize()
        try:
            path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise StateError(f"Unable to write {path}: {exc}") from exc


__all__ = [
    "ActivityLog",
    "DEFAULT_STATE_DIR",
    "LogDocument",
    "LogEntry",
    "RulesDocument",
    "StateError",
    "StateRepository",
]
