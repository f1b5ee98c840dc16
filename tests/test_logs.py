"""Tests for logging setup."""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path

from rich.console import Console

from zipwatch.config.models import LoggingSettings
from zipwatch.logs import configure_logging


def test_configure_logging_writes_timestamped_lines(tmp_path: Path) -> None:
    log_path = tmp_path / "app.log"
    buffer = io.StringIO()
    console = Console(file=buffer, width=120)

    configure_logging(LoggingSettings(), log_path, console=console)
    logging.getLogger("zipwatch.pipeline").info("Processed %s", "report.zip")
    logging.getLogger("zipwatch.pipeline").error("Error processing %s: boom", "bad.zip")
    for handler in logging.getLogger("zipwatch").handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").splitlines()
    stamp = r"\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[^\]]*\]"
    assert re.match(stamp + r" INFO: Processed report.zip$", lines[0])
    assert lines[1].endswith("ERROR: Error processing bad.zip: boom")
    assert "Processed report.zip" in buffer.getvalue()


def test_configure_logging_replaces_previous_handlers(tmp_path: Path) -> None:
    first = tmp_path / "first.log"
    second = tmp_path / "second.log"

    configure_logging(LoggingSettings(), first, quiet=True)
    configure_logging(LoggingSettings(), second, quiet=True)
    logging.getLogger("zipwatch.watch").info("after reconfigure")
    for handler in logging.getLogger("zipwatch").handlers:
        handler.flush()

    assert "after reconfigure" not in first.read_text(encoding="utf-8")
    assert "after reconfigure" in second.read_text(encoding="utf-8")
