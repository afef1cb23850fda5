"""
Source file watcher.

Rebuilds the CV when a watched source is added or changed. watchdog delivers
events on its observer thread; they are handed to the asyncio loop that owns the
BuildCoordinator, which does the debouncing and coalescing.
"""

import asyncio
import inspect
import os
from concurrent.futures import Future
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from cvbuilder.config import BuildConfig
from cvbuilder.contexts.rendering.coordinator import BuildCoordinator, BuildResult
from cvbuilder.contexts.watching.logger import _log_debug, _log_error, _log_info, _log_warning

ResultCallback = Callable[[BuildResult, str], object]


def relative_source_path(path: Path, config: BuildConfig) -> Optional[PurePosixPath]:
    """Path relative to the working directory, or None if it lies outside it."""
    try:
        return PurePosixPath(Path(path).resolve().relative_to(config.working_dir).as_posix())
    except ValueError:
        return None


def matches_watch_patterns(path: Path, config: BuildConfig) -> bool:
    """
    Check whether a changed path should trigger a rebuild.

    Dotfiles and anything under a dot-directory are ignored. Patterns match whole
    path components, so "src/*.tex" does not match "src/sub/cv.tex".
    """
    relative = relative_source_path(path, config)
    if relative is None:
        return False
    if any(part.startswith(".") for part in relative.parts):
        return False
    return any(
        relative.match(pattern) and len(relative.parts) == len(PurePosixPath(pattern).parts)
        for pattern in config.watch_patterns
    )


def watch_dirs(config: BuildConfig) -> List[Path]:
    """Directories that have to be observed to see every watch pattern."""
    return sorted({config.working_dir / Path(pattern).parent for pattern in config.watch_patterns})


class SourceChangeHandler(FileSystemEventHandler):
    """Forwards matching created/modified/moved-into events to a SourceWatcher."""

    def __init__(self, watcher: "SourceWatcher"):
        super().__init__()
        self.watcher = watcher

    def dispatch(self, event: FileSystemEvent) -> None:
        # An exception here would kill the observer thread
        try:
            super().dispatch(event)
        except Exception as e:
            _log_error(f"Watcher error: {e!r}")

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle(event.src_path, "added", event.is_directory)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle(event.src_path, "changed", event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save atomically rename a temp file over the original
        self._handle(event.dest_path, "changed", event.is_directory)

    def _handle(self, raw_path, kind: str, is_directory: bool) -> None:
        if is_directory:
            return
        path = Path(os.fsdecode(raw_path))
        if matches_watch_patterns(path, self.watcher.config):
            self.watcher.notify(path, kind)


class SourceWatcher:
    """
    Watches the CV sources and requests a build for every relevant change.

    Args:
        coordinator: BuildCoordinator that performs the builds
        on_result: Called as on_result(result, path) after each triggered build;
                   may be a plain function or a coroutine function
    """

    def __init__(self, coordinator: BuildCoordinator, on_result: Optional[ResultCallback] = None):
        self.coordinator = coordinator
        self.config = coordinator.config
        self.on_result = on_result
        self.handler = SourceChangeHandler(self)
        self._observer: Optional[BaseObserver] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Start observing. Must be given (or called inside) the coordinator's loop."""
        self._loop = loop or asyncio.get_running_loop()
        _log_info("Starting file watcher...")

        observer = Observer()
        for directory in watch_dirs(self.config):
            if directory.is_dir():
                observer.schedule(self.handler, str(directory), recursive=False)
            else:
                _log_warning(f"Watch directory not found: {directory}")
        observer.start()
        self._observer = observer

        _log_info(f"Watching: {', '.join(self.config.watch_patterns)}")

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        _log_info("File watcher stopped")

    def notify(self, path: Path, kind: str) -> None:
        """Schedule handling of a change; safe to call from any thread."""
        if self._loop is None or self._loop.is_closed():
            _log_warning(f"Ignoring change to {path.name}: watcher is not attached to a loop")
            return
        future = asyncio.run_coroutine_threadsafe(self.handle_change(path, kind), self._loop)
        future.add_done_callback(self._report_failure)

    async def handle_change(self, path: Path, kind: str) -> BuildResult:
        display = str(relative_source_path(path, self.config) or path)
        _log_info(f"File {kind}: {display}")

        result = await self.coordinator.request_build()

        if self.on_result is not None:
            outcome = self.on_result(result, display)
            if inspect.isawaitable(outcome):
                await outcome
        return result

    @staticmethod
    def _report_failure(future: Future) -> None:
        if future.cancelled():
            _log_debug("Change handling cancelled")
            return
        error = future.exception()
        if error is not None:
            _log_error(f"Error while handling change: {error!r}")
