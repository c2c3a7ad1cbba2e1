"""
PyLens Filesystem Event Source.

Cross-platform file system monitoring using watchdog, delivered
onto the asyncio event loop.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from pylens.utils.logger import LoggerMixin


class EventKind(str, Enum):
    """Kinds of filesystem change delivered to watchers."""

    ADD = "add"
    CHANGE = "change"
    REMOVE = "remove"
    ADD_DIR = "add_dir"
    REMOVE_DIR = "remove_dir"

    @property
    def is_file_event(self) -> bool:
        return self in (EventKind.ADD, EventKind.CHANGE, EventKind.REMOVE)


EventCallback = Callable[[EventKind, Path], Any]

JOIN_TIMEOUT = 5.0


class LoopForwardingHandler(FileSystemEventHandler):
    """
    Forwards watchdog events to a callback on the event loop.

    watchdog calls these methods on its observer thread; the callback
    always runs on the loop thread.
    """

    def __init__(self, callback: EventCallback, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._callback = callback
        self._loop = loop

    def _emit(self, kind: EventKind, path: str | bytes) -> None:
        if isinstance(path, bytes):
            path = path.decode()
        if self._loop.is_closed():
            return
        try:
            self._loop.call_soon_threadsafe(self._callback, kind, Path(path))
        except RuntimeError:
            # Loop closed after the check above
            return

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file/directory creation."""
        kind = EventKind.ADD_DIR if event.is_directory else EventKind.ADD
        self._emit(kind, event.src_path)

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file modification."""
        # Directory mtime updates duplicate the child event
        if event.is_directory:
            return
        self._emit(EventKind.CHANGE, event.src_path)

    def on_deleted(self, event: FileDeletedEvent | DirDeletedEvent) -> None:
        """Handle file/directory deletion."""
        kind = EventKind.REMOVE_DIR if event.is_directory else EventKind.REMOVE
        self._emit(kind, event.src_path)

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle move/rename as a removal plus an addition."""
        if event.is_directory:
            self._emit(EventKind.REMOVE_DIR, event.src_path)
            self._emit(EventKind.ADD_DIR, event.dest_path)
            return
        self._emit(EventKind.REMOVE, event.src_path)
        self._emit(EventKind.ADD, event.dest_path)


class Subscription(LoggerMixin):
    """A live recursive watch on one directory. Close to release it."""

    def __init__(self, root: Path, callback: EventCallback, recursive: bool = True) -> None:
        """
        Start watching.

        Must be called with a running event loop.

        Args:
            root: Directory to watch
            callback: Called on the loop with (kind, absolute path)
            recursive: Whether to watch subdirectories
        """
        self.root = root
        self._handler = LoopForwardingHandler(callback, asyncio.get_running_loop())
        self._observer: Any = Observer()
        self._observer.schedule(self._handler, str(root), recursive=recursive)
        self._observer.daemon = True
        self._observer.start()
        self._joined: asyncio.Future[None] | None = None
        self._closed = False
        self.log.debug("subscription_started", path=str(root), recursive=recursive)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop watching. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._observer.stop()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._observer.join(timeout=JOIN_TIMEOUT)
        else:
            # Joined off the loop thread
            self._joined = loop.run_in_executor(None, self._observer.join, JOIN_TIMEOUT)
        self.log.debug("subscription_closed", path=str(self.root))

    async def wait_closed(self) -> None:
        """Wait for the observer thread after close()."""
        if self._joined is not None:
            await self._joined


SubscribeFn = Callable[[Path, EventCallback], Any]


def subscribe(root: Path, callback: EventCallback) -> Subscription:
    """Default event source: a recursive watchdog subscription."""
    return Subscription(root, callback)
