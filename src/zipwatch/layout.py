"""Directory layout maintained under a watched root."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from zipwatch.config.models import PathSettings


@dataclass(frozen=True, slots=True)
class WorkspaceLayout:
    """Resolved paths for every artifact zipwatch reads or writes.

    Attributes:
        root: Watched directory and git working tree.
        workflows: Directory holding active workspace folders.
        archive: Retention directory for retired workspace folders.
        zip_archive: Directory receiving consumed input archives.
        failed: Directory receiving archives that could not be processed.
        status_file: Status document path.
        log_file: Application log path.
    """

    root: Path
    workflows: Path
    archive: Path
    zip_archive: Path
    failed: Path
    status_file: Path
    log_file: Path

    @classmethod
    def from_settings(cls, root: Path, settings: PathSettings | None = None) -> "WorkspaceLayout":
        """Build a layout for ``root`` using configured names."""
        settings = settings or PathSettings()
        root = root.expanduser().resolve()
        workflows = root / settings.workflows_dir
        return cls(
            root=root,
            workflows=workflows,
            archive=workflows / settings.archive_dir,
            zip_archive=root / settings.zip_archive_dir,
            failed=root / settings.failed_dir,
            status_file=root / settings.status_file,
            log_file=root / settings.log_file,
        )

    def ensure(self) -> None:
        """Create the working directories if they are missing."""
        self.workflows.mkdir(parents=True, exist_ok=True)
        self.archive.mkdir(exist_ok=True)
        self.zip_archive.mkdir(parents=True, exist_ok=True)


__all__ = ["WorkspaceLayout"]
