"""Runtime logging setup for the tagsort process."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from tagsort.config.models import LoggingSettings

LOG_FILENAME = "tagsort.log"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: LoggingSettings, log_path: Path) -> logging.Logger:
    """Route the ``tagsort`` logger to a rotating file.

    Calling this again replaces the previously installed handler, so the CLI can
    reconfigure after loading a different configuration.

    Args:
        settings: Level and rotation limits.
        log_path: File receiving the log records; parent directories are created.

    Returns:
        logging.Logger: The configured package logger.
    """
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    logger = logging.getLogger("tagsort")
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_path = log_path.expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=max(settings.max_size_mb, 1) * 1024 * 1024,
        backupCount=max(settings.backup_count, 0),
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    return logger


__all__ = ["LOG_FILENAME", "configure_logging"]
