"""Background scheduler that applies rules to their directories on a fixed cadence."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Literal, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from tagsort.ingestion import DirectoryListingError, DirectoryScanner
from tagsort.organization import FileActionExecutor
from tagsort.rules import EventReport, LogEntry, RuleMap, clone_rule_map
from tagsort.state import ActivityLog

LOGGER = logging.getLogger(__name__)

Stage = Literal["directory", "predicate", "action"]


@dataclass(slots=True)
class ExecutionFailure:
    """A problem encountered during a pass.

    Attributes:
        directory: Directory the failing rule is bound to.
        stage: ``directory`` when the directory could not be listed, ``predicate``
            when an item could not be evaluated, ``action`` when the file action
            failed for an item.
        error: Underlying exception.
        path: Item concerned, ``None`` for directory failures.
        rule: Title of the rule being executed, when known.
    """

    directory: Path
    stage: Stage
    error: Exception
    path: Optional[Path] = None
    rule: Optional[str] = None

    def describe(self) -> str:
        subject = self.path if self.path is not None else self.directory
        return f"[{self.stage}] {subject}: {self.error}"


@dataclass(slots=True)
class PassReport:
    """Summary of one pass over a rule map."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    entries: list[LogEntry] = field(default_factory=list)
    failures: list[ExecutionFailure] = field(default_factory=list)
    skipped: int = 0

    @property
    def processed(self) -> int:
        return len(self.entries)


ErrorCallback = Callable[[ExecutionFailure], None]
PassCallback = Callable[[PassReport], None]


class RuleScheduler:
    """Run a rule map repeatedly on a background thread.

    The scheduler is either idle or running one worker. :meth:`restart` replaces the
    worker with a new one bound to a copy of the given rules; :meth:`stop` returns to
    idle. A worker that is told to stop finishes the pass it is in, and passes are
    serialized by a scheduler-wide lock so two workers never act on the filesystem
    at the same time.
    """

    def __init__(
        self,
        log: ActivityLog,
        *,
        interval_seconds: float = 5.0,
        on_error: Optional[ErrorCallback] = None,
        on_pass: Optional[PassCallback] = None,
        wake_on_change: bool = False,
        scanner: Optional[DirectoryScanner] = None,
        executor: Optional[FileActionExecutor] = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            log: Activity log receiving an entry per successfully processed item.
            interval_seconds: Pause between the end of a pass and the next one.
            on_error: Called with every failure, from the worker thread.
            on_pass: Called with every completed pass, from the worker thread.
            wake_on_change: Start the next pass early when a watched directory
                changes.
            scanner: Directory scanner shared by every pass.
            executor: File action executor shared by every pass.

        Raises:
            ValueError: If ``interval_seconds`` is not positive.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive.")
        self._log = log
        self._interval = interval_seconds
        self._on_error = on_error
        self._on_pass = on_pass
        self._wake_on_change = wake_on_change
        self._scanner = scanner or DirectoryScanner()
        self._executor = executor or FileActionExecutor()
        self._pass_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._worker: Optional[_Worker] = None

    @property
    def log(self) -> ActivityLog:
        return self._log

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._worker is not None and self._worker.is_alive()

    def restart(self, rule_map: RuleMap) -> None:
        """Replace the current worker with one bound to a copy of ``rule_map``.

        Returns without waiting for the previous worker to finish its pass.
        """
        worker = _Worker(self, clone_rule_map(rule_map))
        with self._state_lock:
            previous, self._worker = self._worker, worker
        if previous is not None:
            previous.stop()
        LOGGER.debug("Starting scheduler worker for %d directories", len(worker.rules))
        worker.start()

    def stop(self, *, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Signal the current worker to stop after its in-flight pass.

        Args:
            wait: Block until the worker thread has exited.
            timeout: Maximum number of seconds to wait when ``wait`` is set.
        """
        with self._state_lock:
            previous, self._worker = self._worker, None
        if previous is None:
            return
        previous.stop()
        if wait:
            previous.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        """Block until the current worker exits (after :meth:`stop` or on its own)."""
        with self._state_lock:
            worker = self._worker
        if worker is not None:
            worker.join(timeout)

    def run_pass(self, rule_map: RuleMap) -> PassReport:
        """Run every rule once, synchronously, and return what happened.

        Directories are processed in map order and the rules of a directory in list
        order. Entries are added to the activity log one event batch at a time. A
        directory that cannot be listed is abandoned for this pass only. A rule that
        raises unexpectedly is reported as an action failure and the pass moves on.
        """
        with self._pass_lock:
            return self._execute_pass(rule_map)

    def _execute_pass(self, rule_map: RuleMap) -> PassReport:
        report = PassReport()
        for directory, rules in rule_map.items():
            directory = Path(directory)
            for rule in rules:
                try:
                    for event_report in rule.run(
                        directory, executor=self._executor, scanner=self._scanner
                    ):
                        self._absorb(report, directory, rule.title, event_report)
                except DirectoryListingError as exc:
                    LOGGER.warning("Skipping %s for this pass: %s", directory, exc)
                    self._fail(
                        report, ExecutionFailure(directory, "directory", exc, rule=rule.title)
                    )
                    break
                except Exception as exc:  # noqa: BLE001
                    LOGGER.exception("Rule '%s' failed in %s", rule.title, directory)
                    self._fail(
                        report, ExecutionFailure(directory, "action", exc, rule=rule.title)
                    )
        report.finished_at = datetime.now(timezone.utc)
        return report

    def _absorb(
        self, report: PassReport, directory: Path, title: str, event_report: EventReport
    ) -> None:
        self._log.extend(event_report.entries)
        report.entries.extend(event_report.entries)
        report.skipped += len(event_report.skipped)
        for failure in event_report.item_failures:
            self._fail(
                report,
                ExecutionFailure(
                    directory, "predicate", failure.error, path=failure.path, rule=title
                ),
            )
        for outcome in event_report.errors:
            error = outcome.error or RuntimeError("action failed")
            self._fail(
                report,
                ExecutionFailure(directory, "action", error, path=outcome.source, rule=title),
            )

    def _fail(self, report: PassReport, failure: ExecutionFailure) -> None:
        report.failures.append(failure)
        if self._on_error is None:
            return
        try:
            self._on_error(failure)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Error callback failed for %s", failure.describe())

    def _notify_pass(self, report: PassReport) -> None:
        if self._on_pass is None:
            return
        try:
            self._on_pass(report)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Pass callback failed")


class _Worker:
    """One background thread bound to one rule map."""

    def __init__(self, scheduler: RuleScheduler, rules: RuleMap) -> None:
        self.rules = rules
        self._scheduler = scheduler
        self._stopped = threading.Event()
        self._wake = threading.Event()
        self._thread = threading.Thread(target=self._loop, name="tagsort-scheduler", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        self._wake.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive() and not self._stopped.is_set()

    def _loop(self) -> None:
        scheduler = self._scheduler
        observer = self._start_observer() if scheduler._wake_on_change else None
        try:
            while not self._stopped.is_set():
                report: Optional[PassReport] = None
                with scheduler._pass_lock:
                    if self._stopped.is_set():
                        break
                    try:
                        report = scheduler._execute_pass(self.rules)
                    except Exception:  # noqa: BLE001
                        LOGGER.exception("Unexpected error during scheduler pass")
                if report is not None:
                    scheduler._notify_pass(report)
                self._wake.clear()
                if self._stopped.is_set():
                    break
                self._wake.wait(scheduler.interval_seconds)
        finally:
            if observer is not None:
                observer.stop()
                observer.join(timeout=5)

    def _start_observer(self) -> Optional[Observer]:
        observer = Observer()
        handler = _WakeHandler(self._wake)
        for directory in self.rules:
            path = Path(directory).expanduser()
            if not path.is_dir():
                continue
            try:
                observer.schedule(handler, str(path), recursive=False)
            except OSError as exc:
                LOGGER.warning("Unable to watch %s: %s", directory, exc)
        try:
            observer.start()
        except OSError as exc:
            LOGGER.warning("Change notifications unavailable: %s", exc)
            return None
        return observer


class _WakeHandler(FileSystemEventHandler):
    """Wake the worker whenever something changes in a watched directory."""

    def __init__(self, wake: threading.Event) -> None:
        self._wake = wake

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._wake.set()


__all__ = ["ExecutionFailure", "PassReport", "RuleScheduler"]
