"""Thread-safe, append-only record of completed actions."""

from __future__ import annotations

import threading
from typing import Iterable, Optional

from .models import LogEntry


class ActivityLog:
    """Append-only list of :class:`LogEntry` shared between the scheduler and readers.

    The lock is held only while entries are appended or copied out; callers always
    receive a snapshot they can iterate without blocking writers.
    """

    def __init__(self, entries: Optional[Iterable[LogEntry]] = None) -> None:
        self._lock = threading.Lock()
        self._entries: list[LogEntry] = list(entries or [])

    def push(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def extend(self, entries: Iterable[LogEntry]) -> None:
        """Append a batch of entries under a single lock acquisition."""
        batch = list(entries)
        if not batch:
            return
        with self._lock:
            self._entries.extend(batch)

    def entries(self) -> list[LogEntry]:
        """Return a snapshot of every entry in chronological order."""
        with self._lock:
            return list(self._entries)

    def recent(self, limit: Optional[int] = None) -> list[LogEntry]:
        """Return the newest entries first, at most ``limit`` of them."""
        newest_first = list(reversed(self.entries()))
        if limit is None:
            return newest_first
        return newest_first[: max(limit, 0)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["ActivityLog"]
