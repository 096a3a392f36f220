"""Events: a tag expression paired with the file action applied to its matches."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from tagsort.ingestion import DirectoryScanner, ItemSnapshot
from tagsort.organization import ActionOutcome, FileActionExecutor, OutcomeStatus

from .errors import PredicateError
from .tags import TagExpression

LOGGER = logging.getLogger(__name__)


class CopyAction(BaseModel):
    kind: Literal["copy"] = "copy"
    target: Path = Path("~")
    overwrite: bool = False


class MoveAction(BaseModel):
    kind: Literal["move"] = "move"
    target: Path = Path("~")
    overwrite: bool = False


class TrashAction(BaseModel):
    kind: Literal["trash"] = "trash"


Action = Annotated[Union[CopyAction, MoveAction, TrashAction], Field(discriminator="kind")]


@dataclass(slots=True)
class ItemFailure:
    """An item that could not be evaluated against a selector."""

    path: Path
    error: Exception


@dataclass(slots=True)
class Selection:
    """Items selected from a directory and the items that failed evaluation."""

    items: list[ItemSnapshot] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)


class Event(BaseModel):
    """Select items of a directory and apply one action to all of them.

    Attributes:
        selector: Expression an item must satisfy to be acted upon.
        action: Copy, move or trash, with the action's own settings.
    """

    selector: TagExpression = Field(default_factory=TagExpression)
    action: Action

    @classmethod
    def copy(
        cls,
        target: Path | str = "~",
        *,
        overwrite: bool = False,
        selector: Optional[TagExpression] = None,
    ) -> "Event":
        """Build a copy event, defaulting to the placeholder selector and home."""
        return cls(
            selector=selector or TagExpression(),
            action=CopyAction(target=Path(target), overwrite=overwrite),
        )

    @classmethod
    def move(
        cls,
        target: Path | str = "~",
        *,
        overwrite: bool = False,
        selector: Optional[TagExpression] = None,
    ) -> "Event":
        """Build a move event, defaulting to the placeholder selector and home."""
        return cls(
            selector=selector or TagExpression(),
            action=MoveAction(target=Path(target), overwrite=overwrite),
        )

    @classmethod
    def trash(cls, *, selector: Optional[TagExpression] = None) -> "Event":
        """Build a trash event, defaulting to the placeholder selector."""
        return cls(selector=selector or TagExpression(), action=TrashAction())

    @property
    def name(self) -> str:
        return self.action.kind.capitalize()

    @property
    def target(self) -> Optional[Path]:
        """Destination directory as configured (``~`` unexpanded), ``None`` for trash."""
        if isinstance(self.action, TrashAction):
            return None
        return self.action.target

    @property
    def overwrite(self) -> bool:
        if isinstance(self.action, TrashAction):
            return False
        return self.action.overwrite

    def set_target_path(self, path: Path | str) -> None:
        """Change the destination directory of a copy or move event.

        Args:
            path: Absolute path, or a path starting with ``~``.

        Raises:
            ValueError: If the event is a trash event or the path is relative.
        """
        if isinstance(self.action, TrashAction):
            raise ValueError("Trash events have no target directory.")
        path = Path(path)
        if not (path.is_absolute() or (path.parts and path.parts[0].startswith("~"))):
            raise ValueError(f"Target must be an absolute or home-relative path, got {path}.")
        self.action.target = path

    def set_overwrite(self, overwrite: bool) -> None:
        """Change the conflict policy of a copy or move event.

        Raises:
            ValueError: If the event is a trash event.
        """
        if isinstance(self.action, TrashAction):
            raise ValueError("Trash events do not overwrite anything.")
        self.action.overwrite = overwrite

    def describe(self) -> str:
        """Return a one-line summary such as ``Copy 📄 File to ~/Documents``."""
        text = f"{self.name} {self.selector.name}"
        if self.target is not None:
            text += f" to {display_path(self.target)}"
        if self.overwrite:
            text += " (overwrite)"
        return text

    def select(self, directory: Path, scanner: Optional[DirectoryScanner] = None) -> Selection:
        """Return the current items of ``directory`` that satisfy the selector.

        Items whose evaluation fails are excluded and reported in
        :attr:`Selection.failures`.

        Raises:
            DirectoryListingError: If the directory cannot be listed.
        """
        scanner = scanner or DirectoryScanner()
        selection = Selection()
        for item in scanner.scan(Path(directory)):
            try:
                if self.selector.evaluate(item):
                    selection.items.append(item)
            except PredicateError as exc:
                LOGGER.warning("Skipping %s: %s", item.path, exc)
                selection.failures.append(ItemFailure(item.path, exc))
        return selection

    def execute(
        self,
        directory: Path,
        executor: Optional[FileActionExecutor] = None,
        scanner: Optional[DirectoryScanner] = None,
    ) -> "EventReport":
        """Select items of ``directory`` and apply the action to them.

        Args:
            directory: Directory whose direct children are considered.
            executor: Executor performing the action; a default one is created.
            scanner: Scanner listing the directory; a default one is created.

        Returns:
            EventReport: Log entries for successful items plus skips and failures.

        Raises:
            DirectoryListingError: If the directory cannot be listed.
        """
        selection = self.select(directory, scanner)
        report = EventReport(event=self, item_failures=list(selection.failures))
        if not selection.items:
            return report

        executor = executor or FileActionExecutor()
        sources = [item.path for item in selection.items]
        target_dir: Optional[Path] = None
        if isinstance(self.action, TrashAction):
            outcomes = executor.trash(sources)
        else:
            target_dir = self.action.target.expanduser()
            transfer = executor.copy if isinstance(self.action, CopyAction) else executor.move
            outcomes = transfer(sources, target_dir, overwrite=self.action.overwrite)

        for outcome in outcomes:
            if outcome.status is OutcomeStatus.OK:
                report.entries.append(
                    LogEntry(
                        event=self.model_copy(deep=True),
                        target_dir=target_dir,
                        source_path=outcome.source,
                        resulting_path=outcome.destination or outcome.source,
                    )
                )
            elif outcome.status is OutcomeStatus.SKIPPED:
                LOGGER.debug("Skipped %s: %s", outcome.source, outcome.reason)
                report.skipped.append(outcome)
            else:
                report.errors.append(outcome)
        return report


class LogEntry(BaseModel):
    """Record of one item successfully processed by an event.

    Attributes:
        event: Copy of the event as it was when the item was processed.
        target_dir: Destination directory for copies and moves, ``None`` for trash.
        source_path: Where the item was before the action.
        resulting_path: Where the item ended up; the trashed path for trash events.
        timestamp: When the action completed, in UTC.
    """

    model_config = ConfigDict(frozen=True)

    event: Event
    target_dir: Optional[Path] = None
    source_path: Path
    resulting_path: Path
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class EventReport:
    """Everything that happened while executing one event once."""

    event: Event
    entries: list[LogEntry] = field(default_factory=list)
    skipped: list[ActionOutcome] = field(default_factory=list)
    errors: list[ActionOutcome] = field(default_factory=list)
    item_failures: list[ItemFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.item_failures


def display_path(path: Path) -> str:
    """Render ``path`` with the home directory shortened to ``~``."""
    home = Path.home()
    if path == home:
        return "~"
    try:
        return "~/" + path.relative_to(home).as_posix()
    except ValueError:
        return str(path)


__all__ = [
    "Action",
    "CopyAction",
    "Event",
    "EventReport",
    "ItemFailure",
    "LogEntry",
    "MoveAction",
    "Selection",
    "TrashAction",
    "display_path",
]
