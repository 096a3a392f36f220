"""Tests for tag expressions and the built-in catalog."""

from __future__ import annotations

from pathlib import Path

import pytest

import tagsort.ingestion.models as models
from tagsort.ingestion import ContentKind, EntryType, ItemSnapshot
from tagsort.rules import (
    PLACEHOLDER_TAG,
    ContentBasis,
    NameBasis,
    PredicateError,
    SizeGreaterThanBasis,
    SizeLessThanBasis,
    Tag,
    TagExpression,
    TypeBasis,
    all_tags,
    find_tag,
    matching_tags,
)

FOLDER = Tag(name="📁 Folder", basis=TypeBasis(entry_type=EntryType.DIR))
FILE = Tag(name="📄 File", basis=TypeBasis(entry_type=EntryType.FILE))
IMAGE = Tag(name="🌄 Image", basis=ContentBasis(content=ContentKind.IMAGE))
README = Tag(name="readme", basis=NameBasis(name="README"))


def _file(tmp_path: Path, name: str = "a.txt", data: str = "text") -> ItemSnapshot:
    path = tmp_path / name
    path.write_text(data, encoding="utf-8")
    return ItemSnapshot.from_path(path)


def test_default_expression_holds_placeholder(tmp_path: Path) -> None:
    expression = TagExpression()

    assert [term.tag for term in expression.terms()] == [PLACEHOLDER_TAG]
    assert not expression.evaluate(_file(tmp_path))
    assert expression.evaluate(_file(tmp_path, "dummy.test"))


def test_evaluate_is_conjunction_of_signed_terms(tmp_path: Path) -> None:
    expression = TagExpression.of(FILE)
    expression.push(README, included=False)

    assert expression.evaluate(_file(tmp_path, "notes"))
    assert not expression.evaluate(_file(tmp_path, "README"))

    folder = tmp_path / "folder"
    folder.mkdir()
    assert not expression.evaluate(ItemSnapshot.from_path(folder))


def test_every_term_is_evaluated(tmp_path: Path) -> None:
    # the folder term is false for a file, but the image term still runs and fails
    expression = TagExpression.from_terms([(FOLDER, True), (IMAGE, True)])

    with pytest.raises(PredicateError):
        expression.evaluate(_file(tmp_path))


def test_size_is_measured_once_per_evaluation(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[Path] = []
    real = models.measure_size

    def _counting(path: Path) -> int:
        calls.append(path)
        return real(path)

    monkeypatch.setattr(models, "measure_size", _counting)
    expression = TagExpression.from_terms(
        [
            (Tag(name="big", basis=SizeGreaterThanBasis(size_bytes=1)), True),
            (Tag(name="small", basis=SizeLessThanBasis(size_bytes=100)), True),
        ]
    )

    assert expression.evaluate(_file(tmp_path, data="hello"))
    assert len(calls) == 1


def test_remove_head_promotes_next_term() -> None:
    expression = TagExpression.from_terms([(FILE, True), (README, False)])

    assert expression.remove(FILE)

    assert expression.head.tag == README
    assert expression.head.included is False
    assert expression.rest == []


def test_removing_only_term_restores_placeholder() -> None:
    expression = TagExpression.of(FILE)

    assert expression.remove(FILE)

    assert expression.terms()[0].tag == PLACEHOLDER_TAG
    assert len(expression.terms()) == 1


def test_remove_missing_tag_returns_false() -> None:
    expression = TagExpression.of(FILE)

    assert not expression.remove(FOLDER)
    assert expression.terms()[0].tag == FILE


def test_remove_takes_first_match_in_rest() -> None:
    expression = TagExpression.of(FILE)
    expression.push(README)
    expression.push(README, included=False)

    assert expression.has(README)
    assert expression.remove(README)

    assert [(term.tag, term.included) for term in expression.terms()] == [
        (FILE, True),
        (README, False),
    ]


def test_name_and_description() -> None:
    expression = TagExpression.of(FILE)
    expression.push(README, included=False)

    assert expression.name == "📄 File & not readme"
    assert expression.description.splitlines()[1].startswith("NOT readme")


def test_from_terms_requires_a_term() -> None:
    with pytest.raises(ValueError):
        TagExpression.from_terms([])


def test_catalog_lookup() -> None:
    names = [tag.name for tag in all_tags()]

    assert names[0] == PLACEHOLDER_TAG.name
    assert "📁 Folder" in names
    assert find_tag("folder") == find_tag("📁 Folder")
    assert find_tag("  IMAGE ") is not None
    assert find_tag("nonexistent") is None


def test_matching_tags_skips_failing_tags(tmp_path: Path) -> None:
    names = {tag.name for tag in matching_tags(_file(tmp_path))}

    assert {"📦 Item", "📄 File", "🐜 Small", "🌱 Recent"} <= names
    assert "🌄 Image" not in names
    assert "📁 Folder" not in names


def test_has_matches_head_and_rest_only() -> None:
    expression = TagExpression.of(FILE, included=False)
    expression.push(README)

    assert expression.has(FILE)
    assert expression.has(README)
    assert not expression.has(FOLDER)


def test_removed_tag_is_gone_unless_duplicated() -> None:
    single = TagExpression.of(FILE)
    single.push(README)

    assert single.remove(README)
    assert not single.has(README)
    assert single.remove(FILE)
    assert not single.has(FILE)

    duplicated = TagExpression.of(README)
    duplicated.push(FILE)
    duplicated.push(README, included=False)

    assert duplicated.remove(README)
    assert duplicated.has(README)
    assert duplicated.remove(README)
    assert not duplicated.has(README)
    assert [term.tag for term in duplicated.terms()] == [FILE]
