"""Filesystem watch service that feeds new archives into the pipeline."""

from __future__ import annotations

import logging
import os
import queue
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from zipwatch.config.models import WatchSettings
from zipwatch.pipeline import ArchivePipeline, PipelineResult, is_archive

LOGGER = logging.getLogger(__name__)

Detection = tuple[Path, datetime]


class WatchService:
    """Observe one directory and process each new zip archive in arrival order."""

    def __init__(
        self,
        pipeline: ArchivePipeline,
        *,
        settings: WatchSettings | None = None,
    ) -> None:
        """Initialize the watch service.

        Args:
            pipeline: Pipeline run for every detected archive.
            settings: Detection options; defaults apply when omitted.
        """
        self._pipeline = pipeline
        self._root = pipeline.layout.root
        self._settings = settings or WatchSettings()
        self._observer: Optional[BaseObserver] = None
        self._queue: queue.Queue[Optional[Detection]] = queue.Queue()
        self._stop_event = threading.Event()

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    @property
    def root(self) -> Path:
        return self._root

    def process_once(self) -> list[PipelineResult]:
        """Process every archive currently present in the root, oldest first.

        Returns:
            list[PipelineResult]: One result per processed archive.
        """
        candidates = [
            path for path in self._root.iterdir() if path.is_file() and is_archive(path)
        ]
        candidates.sort(key=lambda path: (path.stat().st_mtime, path.name))
        scanned_at = self._pipeline.now()
        results: list[PipelineResult] = []
        for path in candidates:
            result = self._handle_isolated(path, scanned_at)
            if result is not None:
                results.append(result)
        return results

    def watch(self, callback: Callable[[PipelineResult], None]) -> None:
        """Block while processing filesystem events until ``stop`` is called.

        Args:
            callback: Callable invoked with each completed pipeline result.
        """
        if self._observer is not None:
            raise RuntimeError("WatchService is already running.")

        self._stop_event.clear()
        self._queue = queue.Queue()
        self._observer = Observer()
        layout = self._pipeline.layout
        handler = _ArchiveEventHandler(
            self._root,
            self._queue,
            clock=self._pipeline.now,
            ignored={layout.status_file, layout.log_file},
        )
        self._observer.schedule(handler, str(self._root), recursive=False)
        self._observer.start()
        LOGGER.info("Watching for new .zip files in %s", self._root)
        try:
            self._run_loop(callback)
        finally:
            self.stop()

    def stop(self) -> None:
        """Terminate the watch service and release the observer."""
        self._stop_event.set()
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=5)
        # Unblock the queue to allow the processing loop to exit cleanly.
        self._queue.put(None)

    def handle(
        self, path: Path, detected_at: Optional[datetime] = None
    ) -> Optional[PipelineResult]:
        """Dispatch one detected path.

        Args:
            path: File that appeared in the watched root.
            detected_at: Moment the file was detected; defaults to now.

        Returns:
            Optional[PipelineResult]: Pipeline result, or None when the path
            was ignored or vanished before processing.
        """
        if not is_archive(path):
            LOGGER.info("Ignoring non-zip file: %s", path.name)
            return None
        detected_at = detected_at or self._pipeline.now()
        if not self._wait_until_stable(path):
            LOGGER.warning("Skipping %s: file disappeared before processing", path.name)
            return None
        return self._pipeline.process(path, detected_at)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _run_loop(self, callback: Callable[[PipelineResult], None]) -> None:
        while not self._stop_event.is_set():
            detection = self._queue.get()
            if detection is None:
                break
            result = self._handle_isolated(*detection)
            if result is not None:
                callback(result)

    def _handle_isolated(self, path: Path, detected_at: datetime) -> Optional[PipelineResult]:
        """Run ``handle`` so an unexpected error only affects this archive."""
        try:
            return self.handle(path, detected_at)
        except Exception:
            LOGGER.exception("Error processing %s", path.name)
            return None

    def _wait_until_stable(self, path: Path) -> bool:
        """Wait until the size of ``path`` stops changing for the settle interval."""
        settle = self._settings.settle_seconds
        interval = max(0.01, self._settings.poll_interval_seconds)
        try:
            last_size = path.stat().st_size
        except OSError:
            return False
        if settle <= 0:
            return True

        stable_since = time.monotonic()
        while time.monotonic() - stable_since < settle:
            if self._stop_event.is_set():
                return False
            time.sleep(interval)
            try:
                size = path.stat().st_size
            except OSError:
                return False
            if size != last_size:
                last_size = size
                stable_since = time.monotonic()
        return True


class _ArchiveEventHandler(FileSystemEventHandler):
    """Forward top-level file additions, stamped with their detection time."""

    def __init__(
        self,
        root: Path,
        queue_handle: queue.Queue[Optional[Detection]],
        *,
        clock: Callable[[], datetime] = datetime.now,
        ignored: Iterable[Path] = (),
    ) -> None:
        self._root = root
        self._queue = queue_handle
        self._clock = clock
        self._ignored = set(ignored)

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle a filesystem create event."""
        if not event.is_directory:
            self._enqueue(Path(os.fsdecode(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle files renamed into the root, such as completed downloads."""
        if not event.is_directory:
            self._enqueue(Path(os.fsdecode(event.dest_path)))

    def _enqueue(self, path: Path) -> None:
        resolved = path.parent.resolve() / path.name
        if resolved.parent != self._root or resolved in self._ignored:
            return
        self._queue.put((resolved, self._clock()))


__all__ = ["WatchService"]
