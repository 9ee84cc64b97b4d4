"""Filesystem watcher feeding the map server.

watchdog delivers events on its observer thread; they are translated to
``add``/``change``/``unlink`` and handed to the event loop through
``loop.call_soon_threadsafe`` so the server can consume them sequentially
from an asyncio.Queue.
"""

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

Event = tuple[str, str]

EVENT_NAMES = {
    "created": "add",
    "modified": "change",
    "deleted": "unlink",
}


class CollectionEventHandler(FileSystemEventHandler):
    """Translate watchdog events for watched files into queue items."""

    def __init__(self, watcher: "Watcher"):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event: Any) -> None:
        if event.is_directory:
            return

        if event.event_type == "moved":
            self._emit("unlink", event.src_path)
            self._emit("add", event.dest_path)
            return

        name = EVENT_NAMES.get(event.event_type)
        if name is not None:
            self._emit(name, event.src_path)

    def _emit(self, name: str, raw_path: str | bytes) -> None:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        path = Path(raw_path).resolve()
        if self.watcher.is_watched(path):
            self.watcher.enqueue(name, str(path))


class Watcher:
    """watchdog observer over individual files and recursive directories.

    Files are watched through their parent directory; events for siblings
    are filtered out. Missing directories are skipped until the next
    refresh().
    """

    def __init__(self, queue: asyncio.Queue, loop: asyncio.AbstractEventLoop | None = None):
        self.queue = queue
        self.loop = loop or asyncio.get_running_loop()
        self.observer: Any = None
        self.handler = CollectionEventHandler(self)
        self.files: set[Path] = set()
        self.directories: set[Path] = set()

    def is_watched(self, path: Path) -> bool:
        if path in self.files:
            return True
        return any(path.is_relative_to(directory) for directory in self.directories)

    def enqueue(self, name: str, path: str) -> None:
        """Queue an event from any thread."""
        if self.loop.is_closed():
            return

        def _put() -> None:
            try:
                self.queue.put_nowait((name, path))
            except asyncio.QueueFull:
                logger.warning(f"Event queue full; dropping {name} for {path}")

        self.loop.call_soon_threadsafe(_put)

    def _schedule(self) -> None:
        for parent in sorted({path.parent for path in self.files}):
            self.observer.schedule(self.handler, str(parent), recursive=False)
        for directory in sorted(self.directories):
            if directory.is_dir():
                self.observer.schedule(self.handler, str(directory), recursive=True)
            else:
                logger.debug(f"Not watching missing directory {directory}")

    def _set_targets(self, files: Iterable[Path | str], directories: Iterable[Path | str]) -> None:
        self.files = {Path(path).resolve() for path in files}
        self.directories = {Path(path).resolve() for path in directories}

    def start(self, files: Iterable[Path | str], directories: Iterable[Path | str]) -> None:
        """Start watching and emit the synthetic ``ready`` event."""
        self._set_targets(files, directories)
        self.observer = Observer()
        self._schedule()
        self.observer.start()
        logger.info(f"Watching {len(self.directories)} directories for changes")
        self.enqueue("ready", "")

    def refresh(self, files: Iterable[Path | str], directories: Iterable[Path | str]) -> None:
        """Replace the watched paths, e.g. after the declaration source changed."""
        self._set_targets(files, directories)
        if self.observer is None:
            return
        self.observer.unschedule_all()
        self._schedule()

    def stop(self) -> None:
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join(timeout=1.0)
        if self.observer.is_alive():
            logger.warning("Observer thread did not exit within timeout")
        self.observer = None
