"""Directory listing utilities."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .errors import DirectoryListingError
from .models import EntryType, ItemSnapshot

LOGGER = logging.getLogger(__name__)


class DirectoryScanner:
    """List the direct children of a directory as item snapshots."""

    def __init__(self, *, include_hidden: bool = True) -> None:
        self.include_hidden = include_hidden

    def scan(self, root: Path) -> list[ItemSnapshot]:
        """Return snapshots for the entries of ``root`` ordered by name.

        Entries that vanish or cannot be stat'ed between listing and inspection are
        left out; they will be seen again on the next pass if they come back.

        Raises:
            DirectoryListingError: If ``root`` itself cannot be listed.
        """
        root = Path(root).expanduser()
        try:
            children = sorted(root.iterdir())
        except OSError as exc:
            raise DirectoryListingError(f"Unable to list {root}: {exc}") from exc

        items: list[ItemSnapshot] = []
        for child in children:
            if not self.include_hidden and child.name.startswith("."):
                continue
            try:
                items.append(ItemSnapshot.from_path(child))
            except (OSError, ValueError) as exc:
                LOGGER.debug("Skipping %s: %s", child, exc)
        return items


def list_directory(path: Path | str, *, include_hidden: bool = True) -> list[ItemSnapshot]:
    """Return the current entries of ``path``.

    Raises:
        DirectoryListingError: If the directory cannot be listed.
    """
    return DirectoryScanner(include_hidden=include_hidden).scan(Path(path))


def sort_for_display(items: Iterable[ItemSnapshot]) -> list[ItemSnapshot]:
    """Order items folders first, then by name."""
    return sorted(items, key=lambda item: (item.entry_type is not EntryType.DIR, item.name or ""))


__all__ = ["DirectoryScanner", "list_directory", "sort_for_display"]
