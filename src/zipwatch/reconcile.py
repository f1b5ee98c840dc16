"""Retire existing workspace folders before a fresh extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from zipwatch.errors import FilesystemError

LOGGER = logging.getLogger(__name__)

CollisionPolicy = Literal["fail", "append_number"]


@dataclass(slots=True)
class ReconcileOutcome:
    """Result of reconciling one base name.

    Attributes:
        workspace: Fresh, empty workspace folder created for the archive.
        archived: Retention path of the previous folder, when one existed.
        collision: Whether the retention name was taken and a counter was applied.
    """

    workspace: Path
    archived: Optional[Path] = None
    collision: bool = False


class FolderReconciler:
    """Keep at most one workspace folder per base name."""

    def __init__(
        self,
        workflows_dir: Path,
        archive_dir: Path,
        *,
        on_collision: CollisionPolicy = "fail",
    ) -> None:
        self._workflows_dir = workflows_dir
        self._archive_dir = archive_dir
        self._on_collision = on_collision

    def reconcile(self, base_name: str, timestamp: str) -> ReconcileOutcome:
        """Move any existing folder named ``base_name`` aside and create an empty one.

        Args:
            base_name: Archive base name used as the workspace folder name.
            timestamp: Suffix appended to the retired folder name.

        Returns:
            ReconcileOutcome: Paths of the new workspace and retired folder.

        Raises:
            FilesystemError: If the name is reserved, the retention name is
                already taken under the ``fail`` policy, or a filesystem
                operation fails.
        """
        workspace = self._workflows_dir / base_name
        if workspace.resolve() == self._archive_dir.resolve():
            raise FilesystemError(
                f"Base name {base_name!r} collides with the retention folder {self._archive_dir}"
            )

        outcome = ReconcileOutcome(workspace=workspace)
        if workspace.exists():
            target, collision = self._retention_target(base_name, timestamp)
            try:
                self._archive_dir.mkdir(parents=True, exist_ok=True)
                workspace.rename(target)
            except OSError as exc:
                raise FilesystemError(f"Could not archive {workspace} to {target}: {exc}") from exc
            outcome.archived = target
            outcome.collision = collision
            LOGGER.info("Moved existing folder to archive: %s", target.name)

        try:
            workspace.mkdir(parents=True)
        except OSError as exc:
            raise FilesystemError(f"Could not create workspace folder {workspace}: {exc}") from exc
        return outcome

    def _retention_target(self, base_name: str, timestamp: str) -> tuple[Path, bool]:
        target = self._archive_dir / f"{base_name}_{timestamp}"
        if not target.exists():
            return target, False
        if self._on_collision == "fail":
            raise FilesystemError(f"Archived folder already exists: {target}")

        counter = 1
        candidate = target.with_name(f"{target.name}-{counter}")
        while candidate.exists():
            counter += 1
            candidate = target.with_name(f"{target.name}-{counter}")
        LOGGER.warning("Archived folder %s exists; using %s", target.name, candidate.name)
        return candidate, True


__all__ = ["CollisionPolicy", "FolderReconciler", "ReconcileOutcome"]
