"""Status document describing the most recently processed archive."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import BaseModel

from zipwatch.errors import StatusWriteError

LOGGER = logging.getLogger(__name__)

STATUS_HEADING = "# Latest Workflow"
_FIELD_PATTERN = re.compile(r"^(Folder|Timestamp):\s*(.*)$")


class StatusRecord(BaseModel):
    """Most recent processed base name and its detection timestamp."""

    folder: str
    timestamp: str

    def render(self) -> str:
        """Return the status document text."""
        return f"{STATUS_HEADING}\n\nFolder: {self.folder}\nTimestamp: {self.timestamp}\n"


class StatusRecorder:
    """Overwrite and read back the single status document."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Return the status document location."""
        return self._path

    def record(self, base_name: str, timestamp: str) -> StatusRecord:
        """Replace the status document with the given base name and timestamp.

        Args:
            base_name: Base name of the archive that was just processed.
            timestamp: Detection timestamp in ``HHmmDDMM`` form.

        Returns:
            StatusRecord: The record that was written.

        Raises:
            StatusWriteError: If the document cannot be written.
        """
        record = StatusRecord(folder=base_name, timestamp=timestamp)
        try:
            self._path.write_text(record.render(), encoding="utf-8")
        except OSError as exc:
            raise StatusWriteError(f"Could not write {self._path}: {exc}") from exc
        LOGGER.info("Updated %s: Folder=%s Timestamp=%s", self._path.name, base_name, timestamp)
        return record

    def read(self) -> StatusRecord | None:
        """Parse the current status document, or return None when it is missing or foreign."""
        if not self._path.exists():
            return None
        fields: dict[str, str] = {}
        for line in self._path.read_text(encoding="utf-8").splitlines():
            match = _FIELD_PATTERN.match(line.strip())
            if match:
                fields[match.group(1).lower()] = match.group(2).strip()
        if "folder" not in fields or "timestamp" not in fields:
            return None
        return StatusRecord(folder=fields["folder"], timestamp=fields["timestamp"])


__all__ = ["STATUS_HEADING", "StatusRecord", "StatusRecorder"]
