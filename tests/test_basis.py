"""Tests for the atomic predicates."""

from __future__ import annotations

import os
import time
from datetime import timedelta
from pathlib import Path

import pytest
from PIL import Image

from tagsort.ingestion import ContentKind, EntryType, ItemSnapshot, UnknownContentError
from tagsort.rules import (
    AgeGreaterThanBasis,
    AgeLessThanBasis,
    ChildCountBasis,
    ConstantBasis,
    ContentBasis,
    ExtensionBasis,
    NameBasis,
    PredicateError,
    SizeGreaterThanBasis,
    SizeLessThanBasis,
    Tag,
    TypeBasis,
)
from tagsort.rules.basis import format_bytes


def _snapshot(path: Path) -> ItemSnapshot:
    return ItemSnapshot.from_path(path)


def test_type_and_name(tmp_path: Path) -> None:
    path = tmp_path / "dummy.test"
    path.write_text("", encoding="utf-8")
    item = _snapshot(path)

    assert TypeBasis(entry_type=EntryType.FILE).matches(item)
    assert not TypeBasis(entry_type=EntryType.DIR).matches(item)
    assert NameBasis(name="dummy.test").matches(item)
    assert not NameBasis(name="Dummy.test").matches(item)
    assert ConstantBasis().matches(item)
    assert not ConstantBasis(value=False).matches(item)


def test_extension_only_applies_to_files(tmp_path: Path) -> None:
    (tmp_path / "photo.jpg").write_bytes(b"")
    (tmp_path / "album.jpg").mkdir()
    basis = ExtensionBasis(extensions=["png", "jpg"])

    assert basis.matches(_snapshot(tmp_path / "photo.jpg"))
    assert not basis.matches(_snapshot(tmp_path / "album.jpg"))


def test_size_predicates_use_recursive_size(tmp_path: Path) -> None:
    folder = tmp_path / "folder"
    folder.mkdir()
    (folder / "a.bin").write_bytes(b"x" * 600)
    (folder / "b.bin").write_bytes(b"x" * 600)
    item = _snapshot(folder)

    assert SizeGreaterThanBasis(size_bytes=1000).matches(item)
    assert not SizeLessThanBasis(size_bytes=1000).matches(item)
    assert SizeLessThanBasis(size_bytes=1201).matches(item)


def test_size_of_vanished_item_fails(tmp_path: Path) -> None:
    path = tmp_path / "gone.bin"
    path.write_bytes(b"x")
    item = _snapshot(path)
    path.unlink()

    with pytest.raises(PredicateError) as excinfo:
        SizeLessThanBasis(size_bytes=10).matches(item)
    assert isinstance(excinfo.value.__cause__, OSError)


def test_child_count(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    full = tmp_path / "full"
    full.mkdir()
    (full / "one").write_text("1", encoding="utf-8")
    (full / "two").write_text("2", encoding="utf-8")
    (tmp_path / "file").write_text("", encoding="utf-8")

    assert ChildCountBasis(count=0).matches(_snapshot(empty))
    assert not ChildCountBasis(count=0).matches(_snapshot(full))
    assert ChildCountBasis(comparison=">", count=1).matches(_snapshot(full))
    assert ChildCountBasis(comparison="<", count=3).matches(_snapshot(full))
    assert not ChildCountBasis(count=0).matches(_snapshot(tmp_path / "file"))


def test_age_uses_modification_time(tmp_path: Path) -> None:
    path = tmp_path / "old.txt"
    path.write_text("", encoding="utf-8")
    forty_days_ago = time.time() - timedelta(days=40).total_seconds()
    os.utime(path, (forty_days_ago, forty_days_ago))
    item = _snapshot(path)

    assert AgeGreaterThanBasis(age=timedelta(days=30)).matches(item)
    assert not AgeLessThanBasis(age=timedelta(days=1)).matches(item)

    fresh = tmp_path / "fresh.txt"
    fresh.write_text("", encoding="utf-8")
    assert AgeLessThanBasis(age=timedelta(days=1)).matches(_snapshot(fresh))


def test_content_detection(tmp_path: Path) -> None:
    picture = tmp_path / "cat.png"
    Image.new("RGB", (8, 8), color="blue").save(picture)
    text = tmp_path / "notes.txt"
    text.write_text("plain text", encoding="utf-8")
    folder = tmp_path / "folder"
    folder.mkdir()

    assert ContentBasis(content=ContentKind.IMAGE).matches(_snapshot(picture))
    assert not ContentBasis(content=ContentKind.VIDEO).matches(_snapshot(picture))
    assert not ContentBasis(content=ContentKind.IMAGE).matches(_snapshot(folder))

    with pytest.raises(PredicateError) as excinfo:
        ContentBasis(content=ContentKind.IMAGE).matches(_snapshot(text))
    assert isinstance(excinfo.value.__cause__, UnknownContentError)


def test_tag_round_trips_with_its_basis_variant() -> None:
    tag = Tag(
        name="🕸 Stale",
        description="Not touched for a month.",
        basis=AgeGreaterThanBasis(age=timedelta(days=30)),
    )

    restored = Tag.model_validate_json(tag.model_dump_json())

    assert restored == tag
    assert isinstance(restored.basis, AgeGreaterThanBasis)
    assert restored.label == "Stale"


def test_format_bytes() -> None:
    assert format_bytes(10) == "10 B"
    assert format_bytes(1536) == "1.5 KiB"
    assert format_bytes(1024 * 1024 * 1024) == "1.0 GiB"
