"""Pipeline errors."""


class ZipwatchError(Exception):
    """Base exception for archive processing failures."""


class FilesystemError(ZipwatchError):
    """Raised when a folder cannot be created, renamed, or moved."""


class ExtractionError(ZipwatchError):
    """Raised when an archive cannot be read or unpacked."""


class StatusWriteError(ZipwatchError, OSError):
    """Raised when the status document cannot be written."""


class ProcessSpawnError(ZipwatchError):
    """Raised when the version-control executable cannot be launched."""


__all__ = [
    "ZipwatchError",
    "FilesystemError",
    "ExtractionError",
    "StatusWriteError",
    "ProcessSpawnError",
]
