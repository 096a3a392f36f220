"""Atomic predicates evaluated against item snapshots.

Each predicate is a small frozen Pydantic model tagged by a ``kind`` literal so
that the :data:`Basis` union serializes with its variant and round-trips through
JSON unchanged. Predicates that need more than the snapshot (size, age, child
count, content) re-read the filesystem on every evaluation; only the size is
cached, and only on the snapshot passed in.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Annotated, ClassVar, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from tagsort.ingestion import (
    ContentDetectionError,
    ContentKind,
    EntryType,
    ItemSnapshot,
    TypeDetector,
)

from .errors import PredicateError

_DETECTOR = TypeDetector()


class BasisModel(BaseModel):
    """Common behaviour for every predicate variant."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    needs_size: ClassVar[bool] = False

    def matches(self, item: ItemSnapshot) -> bool:
        """Return whether ``item`` satisfies the predicate.

        Raises:
            PredicateError: If the filesystem cannot be read or the content kind of
                the item is not recognised.
        """
        try:
            return self._check(item)
        except (OSError, ContentDetectionError) as exc:
            raise PredicateError(f"{item.path}: {exc}") from exc

    def describe(self) -> str:
        """Return a short human readable form of the predicate."""
        raise NotImplementedError

    def _check(self, item: ItemSnapshot) -> bool:
        raise NotImplementedError


class ConstantBasis(BasisModel):
    """Matches every item (or none)."""

    kind: Literal["constant"] = "constant"
    value: bool = True

    def describe(self) -> str:
        return "any item" if self.value else "no item"

    def _check(self, item: ItemSnapshot) -> bool:
        return self.value


class TypeBasis(BasisModel):
    kind: Literal["type"] = "type"
    entry_type: EntryType

    def describe(self) -> str:
        return f"type is {self.entry_type.value}"

    def _check(self, item: ItemSnapshot) -> bool:
        return item.entry_type is self.entry_type


class NameBasis(BasisModel):
    """Exact match on the final path component."""

    kind: Literal["name"] = "name"
    name: str

    def describe(self) -> str:
        return f"named {self.name!r}"

    def _check(self, item: ItemSnapshot) -> bool:
        return item.name == self.name


class ExtensionBasis(BasisModel):
    """Regular files whose extension is one of ``extensions`` (without dots)."""

    kind: Literal["extension"] = "extension"
    extensions: List[str]

    def describe(self) -> str:
        return "extension in " + ", ".join(f".{ext}" for ext in self.extensions)

    def _check(self, item: ItemSnapshot) -> bool:
        return item.is_file and item.extension in self.extensions


class SizeLessThanBasis(BasisModel):
    kind: Literal["size_less_than"] = "size_less_than"
    size_bytes: int = Field(ge=0)

    needs_size: ClassVar[bool] = True

    def describe(self) -> str:
        return f"smaller than {format_bytes(self.size_bytes)}"

    def _check(self, item: ItemSnapshot) -> bool:
        return _size_of(item) < self.size_bytes


class SizeGreaterThanBasis(BasisModel):
    kind: Literal["size_greater_than"] = "size_greater_than"
    size_bytes: int = Field(ge=0)

    needs_size: ClassVar[bool] = True

    def describe(self) -> str:
        return f"larger than {format_bytes(self.size_bytes)}"

    def _check(self, item: ItemSnapshot) -> bool:
        return _size_of(item) > self.size_bytes


class ChildCountBasis(BasisModel):
    """Directories with fewer, exactly, or more than ``count`` direct children."""

    kind: Literal["child_count"] = "child_count"
    comparison: Literal["<", "=", ">"] = "="
    count: int = Field(ge=0)

    def describe(self) -> str:
        return f"folder with {self.comparison} {self.count} items"

    def _check(self, item: ItemSnapshot) -> bool:
        if not item.is_dir:
            return False
        children = len(os.listdir(item.path))
        if self.comparison == "<":
            return children < self.count
        if self.comparison == ">":
            return children > self.count
        return children == self.count


class AgeLessThanBasis(BasisModel):
    """Entries modified more recently than ``age`` ago."""

    kind: Literal["age_less_than"] = "age_less_than"
    age: timedelta

    def describe(self) -> str:
        return f"modified within {self.age}"

    def _check(self, item: ItemSnapshot) -> bool:
        return _age_of(item) < self.age


class AgeGreaterThanBasis(BasisModel):
    """Entries last modified longer than ``age`` ago."""

    kind: Literal["age_greater_than"] = "age_greater_than"
    age: timedelta

    def describe(self) -> str:
        return f"not modified for {self.age}"

    def _check(self, item: ItemSnapshot) -> bool:
        return _age_of(item) > self.age


class ContentBasis(BasisModel):
    """Regular files whose signature belongs to ``content``.

    A file whose signature is not recognised at all makes the predicate fail with
    :class:`PredicateError` instead of returning ``False``.
    """

    kind: Literal["content"] = "content"
    content: ContentKind

    def describe(self) -> str:
        return f"{self.content.value} content"

    def _check(self, item: ItemSnapshot) -> bool:
        if not item.is_file:
            return False
        return _DETECTOR.detect(item.path) is self.content


Basis = Annotated[
    Union[
        ConstantBasis,
        TypeBasis,
        NameBasis,
        ExtensionBasis,
        SizeLessThanBasis,
        SizeGreaterThanBasis,
        ChildCountBasis,
        AgeLessThanBasis,
        AgeGreaterThanBasis,
        ContentBasis,
    ],
    Field(discriminator="kind"),
]


def format_bytes(value: int) -> str:
    """Render a byte count with binary units (``1.5 MiB``)."""
    size = float(value)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024 or unit == "TiB":
            return f"{int(size)} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{value} B"


def _size_of(item: ItemSnapshot) -> int:
    return item.with_size().size_bytes or 0


def _age_of(item: ItemSnapshot) -> timedelta:
    return datetime.now(timezone.utc) - item.modified_at()


__all__ = [
    "AgeGreaterThanBasis",
    "AgeLessThanBasis",
    "Basis",
    "BasisModel",
    "ChildCountBasis",
    "ConstantBasis",
    "ContentBasis",
    "ExtensionBasis",
    "NameBasis",
    "SizeGreaterThanBasis",
    "SizeLessThanBasis",
    "TypeBasis",
    "format_bytes",
]
