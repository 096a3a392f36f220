"""Point-in-time views of filesystem entries."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional


class EntryType(str, Enum):
    """Kinds of filesystem entries the engine understands."""

    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"

    @classmethod
    def from_mode(cls, mode: int) -> "EntryType":
        """Map an ``lstat`` mode to an entry type.

        Raises:
            ValueError: For sockets, FIFOs, devices and other special files.
        """
        if stat.S_ISLNK(mode):
            return cls.SYMLINK
        if stat.S_ISDIR(mode):
            return cls.DIR
        if stat.S_ISREG(mode):
            return cls.FILE
        raise ValueError(f"Unsupported entry mode {stat.filemode(mode)}")


@dataclass(frozen=True, slots=True)
class ItemSnapshot:
    """Metadata for a single filesystem entry.

    The entry type is taken from ``lstat`` when the snapshot is created and never
    refreshed. The size is expensive for directories, so it is left empty until
    :meth:`with_size` is called; that call returns a new snapshot rather than
    mutating this one.

    Attributes:
        path: Location of the entry.
        entry_type: File, directory or symlink (symlinks are not followed).
        size_bytes: Cached size, ``None`` until computed.
    """

    path: Path
    entry_type: EntryType
    size_bytes: Optional[int] = None

    @classmethod
    def from_path(cls, path: Path | str) -> "ItemSnapshot":
        """Create a snapshot without computing the size.

        Raises:
            OSError: If the entry cannot be stat'ed.
            ValueError: If the entry is not a file, directory or symlink.
        """
        path = Path(path)
        return cls(path=path, entry_type=EntryType.from_mode(path.lstat().st_mode))

    @property
    def name(self) -> Optional[str]:
        """Final path component, or ``None`` for roots such as ``/``."""
        return self.path.name or None

    @property
    def extension(self) -> Optional[str]:
        """Extension without the leading dot, or ``None`` when there is none."""
        suffix = self.path.suffix
        return suffix[1:] if suffix else None

    @property
    def is_dir(self) -> bool:
        return self.entry_type is EntryType.DIR

    @property
    def is_file(self) -> bool:
        return self.entry_type is EntryType.FILE

    def with_size(self) -> "ItemSnapshot":
        """Return a snapshot whose size slot is filled.

        Raises:
            OSError: If the entry (or part of a directory tree) cannot be read.
        """
        if self.size_bytes is not None:
            return self
        return replace(self, size_bytes=measure_size(self.path))

    def modified_at(self) -> datetime:
        """Re-read the entry's modification time (symlinks are not followed)."""
        return datetime.fromtimestamp(self.path.lstat().st_mtime, tz=timezone.utc)


def measure_size(path: Path) -> int:
    """Return the size of ``path`` in bytes.

    Directories report the sum of everything below them; symlinks report the size
    of the link itself.
    """
    info = path.lstat()
    if not stat.S_ISDIR(info.st_mode):
        return info.st_size
    total = 0
    with os.scandir(path) as entries:
        for entry in entries:
            total += measure_size(Path(entry.path))
    return total


__all__ = ["EntryType", "ItemSnapshot", "measure_size"]
