"""Logging setup shared by the CLI and watch service."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from zipwatch.config.models import LoggingSettings

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
_HANDLER_MARKER = "_zipwatch_handler"


def configure_logging(
    settings: LoggingSettings,
    log_path: Path,
    *,
    console: Console | None = None,
    quiet: bool = False,
    console_output: bool = True,
) -> logging.Logger:
    """Attach console and rotating file handlers to the ``zipwatch`` logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        settings: Logging level and rotation settings.
        log_path: Destination of the append-only application log.
        console: Optional Rich console for terminal output.
        quiet: When True, only errors reach the console; the file still gets everything.
        console_output: When False, records are written to the log file only.

    Returns:
        logging.Logger: The configured package logger.
    """
    logger = logging.getLogger("zipwatch")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    if console_output:
        console_handler = RichHandler(
            console=console,
            show_path=False,
            rich_tracebacks=False,
            markup=False,
        )
        console_handler.setLevel(logging.ERROR if quiet else level)
        setattr(console_handler, _HANDLER_MARKER, True)
        logger.addHandler(console_handler)

    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=max(0, settings.max_size_mb) * 1024 * 1024,
        backupCount=max(0, settings.backup_count),
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    setattr(file_handler, _HANDLER_MARKER, True)
    logger.addHandler(file_handler)

    return logger


__all__ = ["LOG_FORMAT", "configure_logging"]
