"""State repository tests."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from tagsort.ingestion import ContentKind, EntryType
from tagsort.rules import (
    AgeGreaterThanBasis,
    ContentBasis,
    Event,
    ExtensionBasis,
    LogEntry,
    Rule,
    SizeLessThanBasis,
    Tag,
    TagExpression,
    TypeBasis,
)
from tagsort.state import ActivityLog, StateError, StateRepository


def _rule_map(tmp_path: Path) -> dict[Path, list[Rule]]:
    """Return a rule map exercising every action and several predicate kinds.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        dict[Path, list[Rule]]: Two directories with one rule each.
    """
    images = Tag(name="🌄 Image", basis=ContentBasis(content=ContentKind.IMAGE))
    old = Tag(name="🕸 Stale", basis=AgeGreaterThanBasis(age=timedelta(days=30)))
    selector = TagExpression.of(images)
    selector.push(old, included=False)
    tidy = Rule(
        title="Tidy pictures",
        events=[
            Event.copy("~/Pictures", overwrite=True, selector=selector),
            Event.trash(
                selector=TagExpression.of(
                    Tag(name="tmp", basis=ExtensionBasis(extensions=["tmp", "part"]))
                )
            ),
        ],
    )
    archive = Rule(
        title="Archive small folders",
        events=[
            Event.move(
                tmp_path / "archive",
                selector=TagExpression.from_terms(
                    [
                        (Tag(name="dir", basis=TypeBasis(entry_type=EntryType.DIR)), True),
                        (Tag(name="small", basis=SizeLessThanBasis(size_bytes=1024)), True),
                    ]
                ),
            )
        ],
    )
    return {tmp_path / "inbox": [tidy], tmp_path / "downloads": [archive]}


def test_missing_files_load_as_empty(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path / "state")

    assert repo.load_rules() == {}
    assert len(repo.load_log()) == 0


def test_rules_round_trip(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path / "state")
    rule_map = _rule_map(tmp_path)

    repo.save_rules(rule_map)
    loaded = repo.load_rules()

    assert list(loaded) == list(rule_map)
    assert loaded == rule_map
    copy_event = loaded[tmp_path / "inbox"][0].events[0]
    assert copy_event.target == Path("~/Pictures")
    assert copy_event.overwrite is True
    assert copy_event.selector.rest[0].included is False


def test_log_round_trip(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path / "state")
    event = _rule_map(tmp_path)[tmp_path / "inbox"][0].events[0]
    entry = LogEntry(
        event=event,
        target_dir=tmp_path / "Pictures",
        source_path=tmp_path / "inbox" / "cat.png",
        resulting_path=tmp_path / "Pictures" / "cat.png",
    )
    trashed = LogEntry(
        event=Event.trash(),
        source_path=tmp_path / "inbox" / "x.tmp",
        resulting_path=tmp_path / "inbox" / "x.tmp",
    )

    repo.save_log(ActivityLog([entry, trashed]))
    loaded = repo.load_log().entries()

    assert loaded == [entry, trashed]
    assert loaded[1].target_dir is None


def test_invalid_json_raises_state_error(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)
    repo.rules_path.write_text("{not json", encoding="utf-8")
    repo.log_path.write_text('{"entries": [{"unexpected": 1}]}', encoding="utf-8")

    with pytest.raises(StateError):
        repo.load_rules()
    with pytest.raises(StateError):
        repo.load_log()


def test_state_dir_expands_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    repo = StateRepository()
    repo.save_rules({})

    assert repo.state_dir == tmp_path / ".tagsort"
    assert (tmp_path / ".tagsort" / "rules.json").exists()
