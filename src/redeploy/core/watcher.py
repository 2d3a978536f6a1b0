"""File system watcher that reports changed files."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from redeploy.core.config import DEFAULT_IGNORE
from redeploy.utils.logging import get_logger


class ChangeHandler(FileSystemEventHandler):
    """
    Forwards changed files to a callback, one call per event.

    Modified and created files are reported by their own path, renames by
    their destination, so editors that save through a temp file and
    rename it into place still trigger a change.

    Directory events and paths under ignored or hidden segments are dropped.
    """

    def __init__(
        self,
        callback: Callable[[str], None],
        ignore_patterns: Optional[Set[str]] = None,
    ) -> None:
        """
        Initialize the handler.

        Args:
            callback: Function called with the path of each changed file.
            ignore_patterns: Set of directory/file name patterns to ignore.
        """
        super().__init__()
        self.callback = callback
        self.ignore_patterns = set(DEFAULT_IGNORE) if ignore_patterns is None else ignore_patterns
        self.logger = get_logger("redeploy.watcher")

    def _should_ignore(self, path: str) -> bool:
        """Check if a path should be ignored."""
        for part in Path(path).parts:
            if part in self.ignore_patterns:
                return True
            if part.startswith(".") and part not in {".", ".."}:
                return True
        return False

    def _forward(self, path: str | bytes, kind: str) -> None:
        """Pass a changed file path to the callback unless it is ignored."""
        if isinstance(path, bytes):
            path = path.decode()
        if self._should_ignore(path):
            return

        self.logger.debug(f"{kind} detected: {path}")
        try:
            self.callback(path)
        except Exception as e:
            self.logger.error(f"Error handling change for {path}: {e}", exc_info=True)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle a file modification."""
        if not event.is_directory:
            self._forward(event.src_path, "Modify")

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle a file written in place of a deleted one."""
        if not event.is_directory:
            self._forward(event.src_path, "Create")

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle a temp file renamed over its target (atomic save)."""
        if not event.is_directory:
            self._forward(event.dest_path, "Rename")


class ChangeWatcher:
    """
    Watches directory trees and calls back for every changed file.

    Example:
        def on_change(path: str):
            print(f"Changed: {path}")

        watcher = ChangeWatcher(on_change)
        watcher.watch("./actions")
        watcher.start()
        # ... later ...
        watcher.stop()
    """

    def __init__(
        self,
        callback: Callable[[str], None],
        ignore_patterns: Optional[Set[str]] = None,
    ) -> None:
        self.callback = callback
        self._observer = Observer()
        self._handler = ChangeHandler(callback=callback, ignore_patterns=ignore_patterns)
        self._watch_paths: list[Path] = []
        self._running = False
        self._stopped = False
        self._lock = threading.Lock()
        self.logger = get_logger("redeploy.watcher")

    def watch(self, path: str | Path) -> ChangeWatcher:
        """
        Add a path to watch (fluent interface).

        Args:
            path: Directory to watch recursively.

        Returns:
            self for method chaining.
        """
        path = Path(path).expanduser().resolve()
        if not path.exists():
            self.logger.warning(f"Path does not exist: {path}")
            return self
        with self._lock:
            self._watch_paths.append(path)
            if self._running:
                self._observer.schedule(self._handler, str(path), recursive=True)
                self.logger.info(f"Now watching: {path}")
        return self

    def start(self) -> ChangeWatcher:
        """
        Start watching for file changes.

        A watchdog observer cannot be restarted, so starting a stopped
        watcher is a no-op.

        Returns:
            self for method chaining.
        """
        with self._lock:
            if self._running or self._stopped:
                return self

            for path in self._watch_paths:
                self._observer.schedule(self._handler, str(path), recursive=True)
                self.logger.info(f"Watching: {path}")

            self._observer.start()
            self._running = True
        self.logger.debug("File watcher started")
        return self

    def stop(self) -> None:
        """Stop watching for file changes. Safe to call repeatedly."""
        with self._lock:
            if not self._running:
                self._stopped = True
                return
            self._running = False
            self._stopped = True

        self.logger.debug("stopping action watcher...")
        self._observer.stop()
        # stop() may be reached from a callback on the observer thread
        if threading.current_thread() is not self._observer:
            self._observer.join(timeout=5)
        self.logger.info("File watcher stopped")

    @property
    def is_running(self) -> bool:
        """Check if the watcher is currently running."""
        return self._running

    @property
    def watched_paths(self) -> list[Path]:
        """Get list of paths being watched."""
        return self._watch_paths.copy()

    def __enter__(self) -> ChangeWatcher:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()
