"""Zip archive extraction."""

from __future__ import annotations

import logging
import lzma
import zipfile
import zlib
from pathlib import Path

from zipwatch.errors import ExtractionError

LOGGER = logging.getLogger(__name__)


class ArchiveExtractor:
    """Expand every entry of a zip archive into a destination folder."""

    def extract(self, archive: Path, destination: Path) -> list[str]:
        """Unpack ``archive`` into ``destination``, overwriting existing entries.

        Args:
            archive: Path to the zip file.
            destination: Existing directory receiving the archive members.

        Returns:
            list[str]: Member names contained in the archive.

        Raises:
            ExtractionError: If the archive is unreadable or corrupt, or the
                destination cannot be written.
        """
        if not destination.is_dir():
            raise ExtractionError(f"Destination folder does not exist: {destination}")

        try:
            with zipfile.ZipFile(archive) as bundle:
                members = bundle.namelist()
                bundle.extractall(destination)
        except zipfile.BadZipFile as exc:
            raise ExtractionError(f"{archive.name} is not a valid zip archive: {exc}") from exc
        # Corrupt member data surfaces from the codec for that member's compression method.
        except (
            OSError,
            EOFError,
            RuntimeError,
            zlib.error,
            lzma.LZMAError,
            zipfile.LargeZipFile,
        ) as exc:
            raise ExtractionError(f"Failed to extract {archive.name}: {exc}") from exc

        LOGGER.info("Extracted %d entries from %s into %s", len(members), archive.name, destination)
        return members


__all__ = ["ArchiveExtractor"]
