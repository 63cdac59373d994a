"""
File system watcher that re-lints HTML files as they change.

This module provides:
- Watchdog-based file monitoring
- Debounced re-linting (editors often write a file several times per save)
- Filtering to HTML files outside hidden directories
"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .errors import DocumentError
from .rules.engine import HtmlLinter
from .rules.findings import LintResult

logger = logging.getLogger(__name__)

ResultsCallback = Callable[[Path, list[LintResult]], None]
ErrorCallback = Callable[[Path, DocumentError], None]


class HtmlEventHandler(FileSystemEventHandler):
    """
    Collects changes to HTML files and re-lints them once they settle.

    Key behaviors:
    - Debounces rapid modifications per path
    - Ignores directories, hidden paths and non-HTML files
    - Drops pending work for files deleted before the flush
    """

    RELEVANT_EXTENSIONS = {".html", ".htm"}
    DEBOUNCE_SECONDS = 0.5

    def __init__(
        self,
        linter: HtmlLinter,
        on_results: ResultsCallback,
        on_error: ErrorCallback | None = None,
    ):
        super().__init__()
        self.linter = linter
        self.on_results = on_results
        self.on_error = on_error

        # path -> time of the last change seen; written from the observer thread
        self.pending: dict[str, float] = {}
        self._lock = threading.Lock()

    def _is_relevant(self, path: str) -> bool:
        p = Path(path)
        if any(part.startswith(".") and part not in (".", "..") for part in p.parts):
            return False
        return p.suffix.lower() in self.RELEVANT_EXTENSIONS

    def _touch(self, path: str) -> None:
        with self._lock:
            self.pending[path] = time.time()

    def _drop(self, path: str) -> None:
        with self._lock:
            self.pending.pop(path, None)

    def flush_pending(self, now: float | None = None) -> list[Path]:
        """Lint every pending file whose debounce window has passed."""
        now = time.time() if now is None else now
        with self._lock:
            ready = [p for p, ts in self.pending.items() if now - ts >= self.DEBOUNCE_SECONDS]
            for path_str in ready:
                del self.pending[path_str]

        linted: list[Path] = []
        for path_str in ready:
            path = Path(path_str)
            if not path.exists():
                continue
            try:
                results = self.linter.lint_file(path)
            except DocumentError as e:
                logger.warning("Cannot lint %s: %s", path, e)
                if self.on_error:
                    self.on_error(path, e)
                continue
            self.on_results(path, results)
            linted.append(path)
        return linted

    def on_created(self, event: FileCreatedEvent) -> None:
        if event.is_directory or not self._is_relevant(event.src_path):
            return
        self._touch(event.src_path)

    def on_modified(self, event: FileModifiedEvent) -> None:
        if event.is_directory or not self._is_relevant(event.src_path):
            return
        self._touch(event.src_path)

    def on_deleted(self, event: FileDeletedEvent) -> None:
        if event.is_directory:
            return
        self._drop(event.src_path)

    def on_moved(self, event: FileMovedEvent) -> None:
        if event.is_directory:
            return
        self._drop(event.src_path)
        if self._is_relevant(event.dest_path):
            self._touch(event.dest_path)


def watch_directory(
    root: Path,
    linter: HtmlLinter,
    on_results: ResultsCallback,
    on_error: ErrorCallback | None = None,
    recursive: bool = True,
) -> tuple[Observer, HtmlEventHandler]:
    """
    Start watching `root` for HTML changes.

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = HtmlEventHandler(linter=linter, on_results=on_results, on_error=on_error)

    observer = Observer()
    observer.schedule(handler, str(root), recursive=recursive)
    observer.start()

    return observer, handler


def run_watch_loop(
    root: Path,
    linter: HtmlLinter,
    on_results: ResultsCallback,
    on_error: ErrorCallback | None = None,
) -> None:
    """
    Run the watch loop until interrupted.

    This is a blocking function that flushes pending files periodically.
    """
    observer, handler = watch_directory(root, linter, on_results, on_error)

    try:
        while True:
            time.sleep(0.25)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
