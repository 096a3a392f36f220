"""Executor for copy, move and trash actions."""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Callable, Iterable

from send2trash import send2trash

from .models import ActionOutcome

LOGGER = logging.getLogger(__name__)

_Transfer = Callable[[Path, Path], None]


class FileActionExecutor:
    """Apply file actions to batches of paths, one outcome per path.

    A failing item never stops the batch: every source yields exactly one
    :class:`ActionOutcome`, in input order. Existing destinations are skipped
    unless ``overwrite`` is set.
    """

    def copy(
        self, sources: Iterable[Path], target: Path, *, overwrite: bool = False
    ) -> list[ActionOutcome]:
        """Copy each source into the ``target`` directory.

        Folders are copied recursively and symlinks are copied as links. With
        ``overwrite``, a folder copied onto an existing folder is merged into it;
        any other existing destination is replaced once the copy is complete.
        """
        return [
            self._transfer(Path(source), Path(target), overwrite, _copy_entry, "Copy")
            for source in sources
        ]

    def move(
        self, sources: Iterable[Path], target: Path, *, overwrite: bool = False
    ) -> list[ActionOutcome]:
        """Move each source into the ``target`` directory.

        With ``overwrite``, an existing destination is replaced. The old entry is
        only removed once the moved one is in place.
        """
        return [
            self._transfer(Path(source), Path(target), overwrite, _move_entry, "Move")
            for source in sources
        ]

    def trash(self, sources: Iterable[Path]) -> list[ActionOutcome]:
        """Send each source to the platform trash.

        Sources that no longer exist are skipped.
        """
        outcomes: list[ActionOutcome] = []
        for raw in sources:
            source = Path(raw)
            if not os.path.lexists(source):
                outcomes.append(ActionOutcome.skipped(source, "source no longer exists"))
                continue
            try:
                send2trash(str(source))
            except OSError as exc:
                LOGGER.warning("Unable to trash %s: %s", source, exc)
                outcomes.append(ActionOutcome.failed(source, exc))
                continue
            LOGGER.info("Trashed %s", source)
            outcomes.append(ActionOutcome.ok(source))
        return outcomes

    def _transfer(
        self,
        source: Path,
        target: Path,
        overwrite: bool,
        operation: _Transfer,
        verb: str,
    ) -> ActionOutcome:
        if not source.name:
            return ActionOutcome.failed(source, ValueError(f"{source} has no file name"))
        target = target.expanduser()
        if not target.is_dir():
            return ActionOutcome.failed(source, NotADirectoryError(f"{target} is not a directory"))

        destination = target / source.name
        if os.path.lexists(destination):
            if _same_location(source, destination):
                return ActionOutcome.skipped(source, f"{source} is already in {target}")
            if not overwrite:
                return ActionOutcome.skipped(source, f"{destination} already exists")
        if _is_real_dir(source) and _is_within(target, source):
            return ActionOutcome.failed(
                source, ValueError(f"Cannot place {source} inside itself ({target})")
            )

        try:
            operation(source, destination)
        except OSError as exc:
            LOGGER.warning("%s failed for %s -> %s: %s", verb, source, destination, exc)
            return ActionOutcome.failed(source, exc)

        LOGGER.info("%s done: %s -> %s", verb, source, destination)
        return ActionOutcome.ok(source, destination)


def _copy_entry(source: Path, destination: Path) -> None:
    if _is_real_dir(source) and _is_real_dir(destination):
        shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
        return
    if not os.path.lexists(destination):
        _copy_to(source, destination)
        return

    staged = _staging_path(destination)
    try:
        _copy_to(source, staged)
        _swap_in(staged, destination)
    except OSError:
        _discard(staged)
        raise


def _move_entry(source: Path, destination: Path) -> None:
    if not os.path.lexists(destination):
        shutil.move(str(source), str(destination))
        return

    staged = _staging_path(destination)
    try:
        shutil.move(str(source), str(staged))
    except OSError:
        if os.path.lexists(source):
            _discard(staged)
        raise
    try:
        _swap_in(staged, destination)
    except OSError:
        shutil.move(str(staged), str(source))
        raise


def _copy_to(source: Path, destination: Path) -> None:
    if _is_real_dir(source):
        shutil.copytree(source, destination, symlinks=True)
    else:
        shutil.copy2(source, destination, follow_symlinks=False)


def _staging_path(destination: Path) -> Path:
    return destination.with_name(f".{destination.name}.tagsort-{uuid.uuid4().hex[:8]}")


def _swap_in(staged: Path, destination: Path) -> None:
    """Put ``staged`` at ``destination``; the old entry is removed only once replaced."""
    backup = _staging_path(destination)
    os.rename(destination, backup)
    try:
        os.rename(staged, destination)
    except OSError:
        os.rename(backup, destination)
        raise
    _discard(backup)


def _discard(path: Path) -> None:
    if not os.path.lexists(path):
        return
    try:
        _remove(path)
    except OSError as exc:
        LOGGER.warning("Unable to remove leftover %s: %s", path, exc)


def _remove(path: Path) -> None:
    if _is_real_dir(path):
        shutil.rmtree(path)
    else:
        path.unlink()


def _is_real_dir(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def _same_location(source: Path, destination: Path) -> bool:
    try:
        left = source.parent.resolve() / source.name
        return left == destination.parent.resolve() / destination.name
    except OSError:
        return False


def _is_within(target: Path, folder: Path) -> bool:
    resolved_target = target.resolve()
    resolved_folder = folder.resolve()
    return resolved_target == resolved_folder or resolved_folder in resolved_target.parents


__all__ = ["FileActionExecutor"]
