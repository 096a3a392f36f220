"""Configuration models describing tagsort settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TagsortBaseModel(BaseModel):
    """Shared configuration for tagsort Pydantic settings models."""

    model_config = ConfigDict(extra="forbid")


class SchedulerSettings(TagsortBaseModel):
    """Background scheduler options.

    Attributes:
        interval_seconds: Pause between the end of one pass and the start of the next.
        wake_on_change: Whether filesystem events in watched directories trigger an
            early pass.
    """

    interval_seconds: float = Field(default=5.0, gt=0)
    wake_on_change: bool = False


class ScanningOptions(TagsortBaseModel):
    """Directory listing options.

    Attributes:
        include_hidden: Whether dot-prefixed entries are offered to rules.
    """

    include_hidden: bool = True


class StateSettings(TagsortBaseModel):
    """Location of persisted rules and activity log.

    Attributes:
        directory: Directory holding ``rules.json``, ``log.json`` and the runtime log.
    """

    directory: str = "~/.tagsort"


class LoggingSettings(TagsortBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(TagsortBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
        log_history_limit: Default number of activity log entries to display.
    """

    quiet_default: bool = False
    summary_default: bool = False
    log_history_limit: int = 20


class TagsortConfig(TagsortBaseModel):
    """Top-level configuration struct for tagsort.

    Attributes:
        scheduler: Background scheduler settings.
        scanning: Directory listing settings.
        state: Persistence location settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    scanning: ScanningOptions = Field(default_factory=ScanningOptions)
    state: StateSettings = Field(default_factory=StateSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "TagsortBaseModel",
    "SchedulerSettings",
    "ScanningOptions",
    "StateSettings",
    "LoggingSettings",
    "CLIOptions",
    "TagsortConfig",
]
