"""Built-in tags offered to rule authors."""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from tagsort.ingestion import ContentKind, EntryType, ItemSnapshot

from .basis import (
    AgeGreaterThanBasis,
    AgeLessThanBasis,
    ChildCountBasis,
    ConstantBasis,
    ContentBasis,
    SizeGreaterThanBasis,
    SizeLessThanBasis,
    TypeBasis,
)
from .errors import PredicateError
from .tags import PLACEHOLDER_TAG, Tag

_MIB = 1024 * 1024

_CATALOG: tuple[Tag, ...] = (
    PLACEHOLDER_TAG,
    Tag(
        name="📦 Item",
        description="A folder, file or a symlink.",
        basis=ConstantBasis(value=True),
    ),
    Tag(
        name="📁 Folder",
        description="An object that contains other files.",
        basis=TypeBasis(entry_type=EntryType.DIR),
    ),
    Tag(
        name="📄 File",
        description=(
            "An object that contains data. The data can be represented in plain text "
            "or encoded in any format."
        ),
        basis=TypeBasis(entry_type=EntryType.FILE),
    ),
    Tag(
        name="🔗 Symlink",
        description="A link pointing at another file or folder.",
        basis=TypeBasis(entry_type=EntryType.SYMLINK),
    ),
    Tag(
        name="🐚 Empty",
        description="An empty folder.",
        basis=ChildCountBasis(comparison="=", count=0),
    ),
    Tag(
        name="🌄 Image",
        description="A picture such as a photo, scan or screenshot.",
        basis=ContentBasis(content=ContentKind.IMAGE),
    ),
    Tag(
        name="🎬 Video",
        description="A movie or screen recording.",
        basis=ContentBasis(content=ContentKind.VIDEO),
    ),
    Tag(
        name="🎵 Audio",
        description="Music, a podcast or a voice recording.",
        basis=ContentBasis(content=ContentKind.AUDIO),
    ),
    Tag(
        name="📝 Document",
        description="A PDF, office document, spreadsheet or presentation.",
        basis=ContentBasis(content=ContentKind.DOCUMENT),
    ),
    Tag(
        name="🧰 Archive",
        description="A compressed bundle of files.",
        basis=ContentBasis(content=ContentKind.ARCHIVE),
    ),
    Tag(
        name="📚 Book",
        description="An electronic book.",
        basis=ContentBasis(content=ContentKind.BOOK),
    ),
    Tag(
        name="🐜 Small",
        description="Takes less than 1 MiB of disk space.",
        basis=SizeLessThanBasis(size_bytes=_MIB),
    ),
    Tag(
        name="🐘 Large",
        description="Takes more than 1 GiB of disk space.",
        basis=SizeGreaterThanBasis(size_bytes=1024 * _MIB),
    ),
    Tag(
        name="🌱 Recent",
        description="Modified during the last day.",
        basis=AgeLessThanBasis(age=timedelta(days=1)),
    ),
    Tag(
        name="🕸 Stale",
        description="Not modified for more than 30 days.",
        basis=AgeGreaterThanBasis(age=timedelta(days=30)),
    ),
)


def all_tags() -> list[Tag]:
    """Return the built-in tags in presentation order."""
    return list(_CATALOG)


def find_tag(query: str) -> Optional[Tag]:
    """Look up a built-in tag by full name or by name without the emoji.

    The comparison ignores case and surrounding whitespace.
    """
    needle = query.strip().casefold()
    for tag in _CATALOG:
        if needle in (tag.name.casefold(), tag.label.casefold()):
            return tag
    return None


def matching_tags(item: ItemSnapshot) -> list[Tag]:
    """Return the built-in tags that hold for ``item``, skipping ones that fail."""
    try:
        item = item.with_size()
    except OSError:
        pass  # the size tags will fail and be skipped below
    matched: list[Tag] = []
    for tag in _CATALOG:
        try:
            if tag.matches(item):
                matched.append(tag)
        except PredicateError:
            continue
    return matched


__all__ = ["all_tags", "find_tag", "matching_tags"]
