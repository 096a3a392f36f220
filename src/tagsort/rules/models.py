"""Rules bind an ordered list of events to a watched directory."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Optional

from pydantic import BaseModel, Field

from tagsort.ingestion import DirectoryScanner
from tagsort.organization import FileActionExecutor

from .events import Event, EventReport


class Rule(BaseModel):
    """A titled, ordered list of events."""

    title: str
    events: List[Event] = Field(default_factory=list)

    def run(
        self,
        directory: Path,
        executor: Optional[FileActionExecutor] = None,
        scanner: Optional[DirectoryScanner] = None,
    ) -> Iterator[EventReport]:
        """Execute the events in order, yielding each report as soon as it is ready.

        Every event re-lists ``directory``, so later events see the effects of
        earlier ones.

        Raises:
            DirectoryListingError: If the directory cannot be listed; events that
                already ran have been yielded.
        """
        executor = executor or FileActionExecutor()
        scanner = scanner or DirectoryScanner()
        for event in self.events:
            yield event.execute(directory, executor=executor, scanner=scanner)

    def execute(
        self,
        directory: Path,
        executor: Optional[FileActionExecutor] = None,
        scanner: Optional[DirectoryScanner] = None,
    ) -> list[EventReport]:
        """Execute every event against ``directory`` and return the reports."""
        return list(self.run(directory, executor=executor, scanner=scanner))


RuleMap = Dict[Path, List[Rule]]


def clone_rule_map(rule_map: RuleMap) -> RuleMap:
    """Return a deep copy of ``rule_map`` with normalised directory keys."""
    return {
        Path(directory): [rule.model_copy(deep=True) for rule in rules]
        for directory, rules in rule_map.items()
    }


__all__ = ["Rule", "RuleMap", "clone_rule_map"]
