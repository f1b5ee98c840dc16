"""Per-archive processing pipeline: reconcile, extract, relocate, record, commit."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Literal, Optional, TypeVar

from zipwatch.config.models import ZipwatchConfig
from zipwatch.errors import (
    ExtractionError,
    FilesystemError,
    ProcessSpawnError,
    StatusWriteError,
    ZipwatchError,
)
from zipwatch.extract import ArchiveExtractor
from zipwatch.layout import WorkspaceLayout
from zipwatch.reconcile import FolderReconciler
from zipwatch.status import StatusRecorder
from zipwatch.vcs import CommitResult, GitCommitter

LOGGER = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%H%M%d%m"
ARCHIVE_SUFFIX = ".zip"

Stage = Literal["reconcile", "extract", "relocate", "record", "commit", "dead_letter"]
ErrorKind = Literal["filesystem", "extraction", "status_write", "process_spawn"]

_ERROR_KINDS: tuple[tuple[type[ZipwatchError], ErrorKind], ...] = (
    (FilesystemError, "filesystem"),
    (ExtractionError, "extraction"),
    (StatusWriteError, "status_write"),
    (ProcessSpawnError, "process_spawn"),
)

T = TypeVar("T")


def format_timestamp(moment: datetime) -> str:
    """Render a detection time as ``HHmmDDMM``."""
    return moment.strftime(TIMESTAMP_FORMAT)


def is_archive(path: Path) -> bool:
    """Return True when ``path`` names a zip archive."""
    return path.suffix.lower() == ARCHIVE_SUFFIX


@dataclass(slots=True)
class StageResult:
    """Tagged outcome of a single pipeline stage."""

    stage: Stage
    ok: bool
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    detail: Optional[Path] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "ok": self.ok,
            "error_kind": self.error_kind,
            "message": self.message,
            "detail": self.detail.as_posix() if self.detail else None,
        }


@dataclass(slots=True)
class PipelineResult:
    """Outcome metadata describing one processed archive.

    Attributes:
        archive: Path where the archive was detected.
        base_name: Archive file name without its extension.
        timestamp: Detection timestamp shared by every artifact of this run.
        stages: Stage results in execution order.
        workspace: Workspace folder receiving the extracted entries.
        archived_folder: Retention path of the previous workspace folder.
        consumed_archive: Final location of the input archive after relocation.
        dead_letter: Location of the archive when it was moved to the failed folder.
        members: Entries extracted from the archive.
        commit: Captured git output, when the commit step ran.
    """

    archive: Path
    base_name: str
    timestamp: str
    stages: list[StageResult] = field(default_factory=list)
    workspace: Optional[Path] = None
    archived_folder: Optional[Path] = None
    consumed_archive: Optional[Path] = None
    dead_letter: Optional[Path] = None
    members: list[str] = field(default_factory=list)
    commit: Optional[CommitResult] = None

    @property
    def succeeded(self) -> bool:
        """Return True when every executed stage succeeded."""
        return bool(self.stages) and all(stage.ok for stage in self.stages)

    @property
    def failures(self) -> list[StageResult]:
        """Return the stages that failed."""
        return [stage for stage in self.stages if not stage.ok]

    @property
    def json_payload(self) -> dict[str, Any]:
        """Return a JSON-ready description of the run."""

        def _path(value: Optional[Path]) -> Optional[str]:
            return value.as_posix() if value else None

        return {
            "archive": self.archive.name,
            "base_name": self.base_name,
            "timestamp": self.timestamp,
            "succeeded": self.succeeded,
            "workspace": _path(self.workspace),
            "archived_folder": _path(self.archived_folder),
            "consumed_archive": _path(self.consumed_archive),
            "dead_letter": _path(self.dead_letter),
            "members": list(self.members),
            "stages": [stage.to_payload() for stage in self.stages],
            "commit": self.commit.to_payload() if self.commit else None,
        }


class ArchivePipeline:
    """Drive the processing steps for one detected archive at a time."""

    def __init__(
        self,
        layout: WorkspaceLayout,
        *,
        reconciler: FolderReconciler,
        extractor: ArchiveExtractor,
        recorder: StatusRecorder,
        committer: Optional[GitCommitter] = None,
        dead_letter: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._layout = layout
        self._reconciler = reconciler
        self._extractor = extractor
        self._recorder = recorder
        self._committer = committer
        self._dead_letter = dead_letter
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        layout: WorkspaceLayout,
        config: ZipwatchConfig,
        *,
        commit: Optional[bool] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "ArchivePipeline":
        """Assemble a pipeline from configuration.

        Args:
            layout: Resolved workspace layout.
            config: Loaded configuration.
            commit: Override for ``git.enabled``.
            clock: Source of detection times.

        Returns:
            ArchivePipeline: Pipeline wired with the configured components.
        """
        commit_enabled = config.git.enabled if commit is None else commit
        committer = None
        if commit_enabled:
            committer = GitCommitter(
                layout.root,
                executable=config.git.executable,
                timeout_seconds=config.git.timeout_seconds,
            )
        return cls(
            layout,
            reconciler=FolderReconciler(
                layout.workflows,
                layout.archive,
                on_collision=config.reconcile.on_collision,
            ),
            extractor=ArchiveExtractor(),
            recorder=StatusRecorder(layout.status_file),
            committer=committer,
            dead_letter=config.dead_letter.enabled,
            clock=clock,
        )

    @property
    def layout(self) -> WorkspaceLayout:
        return self._layout

    def now(self) -> datetime:
        """Return the current time from the pipeline clock."""
        return self._clock()

    def process(self, archive: Path, detected_at: Optional[datetime] = None) -> PipelineResult:
        """Run every stage for ``archive``; failures are captured, never raised.

        Args:
            archive: Path of the detected zip file.
            detected_at: Moment the archive was detected; the clock is read when omitted.

        Returns:
            PipelineResult: Stage-by-stage outcome of the run.
        """
        result = PipelineResult(
            archive=archive,
            base_name=archive.stem,
            timestamp=format_timestamp(detected_at or self._clock()),
        )

        reconciled = self._run_stage(
            result,
            "reconcile",
            lambda: self._reconciler.reconcile(result.base_name, result.timestamp),
        )
        if reconciled is None:
            return self._abort(result)
        workspace = reconciled.workspace
        result.workspace = workspace
        result.archived_folder = reconciled.archived

        members = self._run_stage(
            result, "extract", lambda: self._extractor.extract(archive, workspace)
        )
        if members is None:
            return self._abort(result)
        result.members = list(members)

        consumed = self._run_stage(result, "relocate", lambda: self._relocate(archive))
        if consumed is None:
            return self._abort(result)
        result.consumed_archive = consumed

        recorded = self._run_stage(
            result, "record", lambda: self._recorder.record(result.base_name, result.timestamp)
        )
        if recorded is None:
            LOGGER.error("Skipping commit for %s; status record not written", archive.name)
            return result

        committer = self._committer
        if committer is None:
            LOGGER.info("Commit disabled; leaving changes for %s uncommitted", archive.name)
        else:
            commit = self._run_stage(
                result, "commit", lambda: committer.commit(result.base_name, result.timestamp)
            )
            if commit is not None:
                result.commit = commit

        if result.succeeded:
            LOGGER.info("Processed %s", archive.name)
        return result

    def _run_stage(
        self, result: PipelineResult, stage: Stage, action: Callable[[], T]
    ) -> Optional[T]:
        """Execute ``action`` and record a tagged result for ``stage``."""
        try:
            value = action()
        except ZipwatchError as exc:
            kind = _classify(exc)
            result.stages.append(
                StageResult(stage=stage, ok=False, error_kind=kind, message=str(exc))
            )
            self._log_failure(result, stage, kind, exc)
            return None
        detail = value if isinstance(value, Path) else None
        result.stages.append(StageResult(stage=stage, ok=True, detail=detail))
        return value

    def _log_failure(
        self, result: PipelineResult, stage: Stage, kind: ErrorKind, exc: ZipwatchError
    ) -> None:
        name = result.archive.name
        if kind == "extraction":
            LOGGER.error("Error processing %s: extraction failed: %s", name, exc)
        elif kind == "filesystem":
            LOGGER.error("Error processing %s: filesystem error during %s: %s", name, stage, exc)
        elif kind == "status_write":
            LOGGER.error("Error processing %s: status record not updated: %s", name, exc)
        else:
            LOGGER.warning("Error processing %s: commit not performed: %s", name, exc)

    def _abort(self, result: PipelineResult) -> PipelineResult:
        """Stop after an early failure, moving the archive to the failed folder when enabled."""
        if self._dead_letter and result.archive.exists():
            moved = self._run_stage(
                result, "dead_letter", lambda: self._move_to_failed(result.archive)
            )
            if moved is not None:
                result.dead_letter = moved
        return result

    def _relocate(self, archive: Path) -> Path:
        target = self._layout.zip_archive / archive.name
        try:
            self._layout.zip_archive.mkdir(parents=True, exist_ok=True)
            archive.replace(target)
        except OSError as exc:
            raise FilesystemError(
                f"Could not move {archive.name} to {target.parent}: {exc}"
            ) from exc
        return target

    def _move_to_failed(self, archive: Path) -> Path:
        failed_dir = self._layout.failed
        target = failed_dir / archive.name
        counter = 1
        while target.exists():
            target = failed_dir / f"{archive.stem}-{counter}{archive.suffix}"
            counter += 1
        try:
            failed_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(archive), str(target))
        except OSError as exc:
            raise FilesystemError(f"Could not move {archive.name} to {failed_dir}: {exc}") from exc
        LOGGER.warning("Moved %s to %s", archive.name, target)
        return target


def _classify(exc: ZipwatchError) -> ErrorKind:
    for error_type, kind in _ERROR_KINDS:
        if isinstance(exc, error_type):
            return kind
    return "filesystem"


__all__ = [
    "ARCHIVE_SUFFIX",
    "TIMESTAMP_FORMAT",
    "ArchivePipeline",
    "PipelineResult",
    "StageResult",
    "format_timestamp",
    "is_archive",
]
