"""Configuration models describing zipwatch settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ZipwatchBaseModel(BaseModel):
    """Shared configuration for zipwatch Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class PathSettings(ZipwatchBaseModel):
    """Names of the directories and files maintained under the watched root.

    Attributes:
        workflows_dir: Directory holding extracted workspace folders.
        archive_dir: Retention directory for retired folders, nested in ``workflows_dir``.
        zip_archive_dir: Directory receiving consumed input archives.
        failed_dir: Directory receiving archives that could not be processed.
        status_file: Status document overwritten after every processed archive.
        log_file: Append-only application log.
    """

    workflows_dir: str = "workflows"
    archive_dir: str = "archive"
    zip_archive_dir: str = "zipArchive"
    failed_dir: str = "failed"
    status_file: str = "README.md"
    log_file: str = "app.log"


class WatchSettings(ZipwatchBaseModel):
    """Options that shape how new archives are detected.

    Attributes:
        settle_seconds: Time a file size must stay unchanged before processing.
        poll_interval_seconds: Interval between size checks while settling.
    """

    settle_seconds: float = 0.5
    poll_interval_seconds: float = 0.1


class ReconcileSettings(ZipwatchBaseModel):
    """Policy applied when a retired folder name is already taken.

    Attributes:
        on_collision: ``fail`` aborts the event, ``append_number`` adds a counter suffix.
    """

    on_collision: Literal["fail", "append_number"] = "fail"


class GitSettings(ZipwatchBaseModel):
    """Version-control commit options.

    Attributes:
        enabled: Whether processed archives are committed.
        executable: Path or name of the git executable.
        timeout_seconds: Upper bound for each git invocation.
    """

    enabled: bool = True
    executable: str = "git"
    timeout_seconds: float = 60.0


class DeadLetterSettings(ZipwatchBaseModel):
    """Handling of archives that fail before being consumed.

    Attributes:
        enabled: Move failed archives into the failed directory.
    """

    enabled: bool = True


class LoggingSettings(ZipwatchBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "INFO"
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(ZipwatchBaseModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
    """

    quiet_default: bool = False


class ZipwatchConfig(ZipwatchBaseModel):
    """Top-level configuration struct for zipwatch."""

    paths: PathSettings = Field(default_factory=PathSettings)
    watch: WatchSettings = Field(default_factory=WatchSettings)
    reconcile: ReconcileSettings = Field(default_factory=ReconcileSettings)
    git: GitSettings = Field(default_factory=GitSettings)
    dead_letter: DeadLetterSettings = Field(default_factory=DeadLetterSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "ZipwatchBaseModel",
    "PathSettings",
    "WatchSettings",
    "ReconcileSettings",
    "GitSettings",
    "DeadLetterSettings",
    "LoggingSettings",
    "CLIOptions",
    "ZipwatchConfig",
]
