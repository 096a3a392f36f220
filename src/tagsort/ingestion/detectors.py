"""Content sniffing for files whose kind matters to rules."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import filetype

from .errors import UnknownContentError

_BOOK_EXTENSIONS = frozenset({"epub", "mobi"})
_DOCUMENT_EXTENSIONS = frozenset(
    {"pdf", "rtf", "doc", "docx", "odt", "xls", "xlsx", "ods", "ppt", "pptx", "odp", "ps"}
)
_ARCHIVE_EXTENSIONS = frozenset(
    {
        "zip", "tar", "rar", "gz", "bz2", "7z", "xz", "zst", "lz", "lz4",
        "Z", "cab", "deb", "rpm", "ar", "br", "cpio", "crx",
    }
)


class ContentKind(str, Enum):
    """Broad content categories recognised from file signatures."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    ARCHIVE = "archive"
    BOOK = "book"


class TypeDetector:
    """Identify a file's content kind from its leading bytes using ``filetype``."""

    def detect(self, path: Path) -> ContentKind | None:
        """Return the content kind of ``path``.

        Returns ``None`` when the signature is recognised but belongs to none of the
        :class:`ContentKind` categories (fonts, for example).

        Raises:
            UnknownContentError: If no known signature matches the file.
            OSError: If the file cannot be read.
        """
        guess = filetype.guess(str(path))
        if guess is None:
            raise UnknownContentError(f"Unrecognised content format: {path}")

        extension = guess.extension
        mime = guess.mime
        if extension in _BOOK_EXTENSIONS:
            return ContentKind.BOOK
        if extension in _DOCUMENT_EXTENSIONS:
            return ContentKind.DOCUMENT
        if mime.startswith("image/"):
            return ContentKind.IMAGE
        if mime.startswith("video/"):
            return ContentKind.VIDEO
        if mime.startswith("audio/"):
            return ContentKind.AUDIO
        if extension in _ARCHIVE_EXTENSIONS:
            return ContentKind.ARCHIVE
        return None


__all__ = ["ContentKind", "TypeDetector"]
