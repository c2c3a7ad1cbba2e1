"""
PyLens Project Watcher.

Feeds accepted project changes into the restart debouncer.
Requires Python 3.11+.
"""

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from pylens.utils.config import EffectiveConfig
from pylens.utils.logger import LoggerMixin
from pylens.watcher.debouncer import RestartDebouncer
from pylens.watcher.event_source import EventKind, SubscribeFn, subscribe
from pylens.watcher.patterns import PathFilter, to_posix


@dataclass(frozen=True)
class ChangeRecord:
    """The most recent accepted file change."""

    rel_path: str
    kind: EventKind
    observed_at: datetime


class ChangeLog:
    """Holds the single most recent ChangeRecord. Never cleared."""

    def __init__(self) -> None:
        self.last: ChangeRecord | None = None

    def record(self, rel_path: str, kind: EventKind) -> ChangeRecord:
        self.last = ChangeRecord(rel_path=rel_path, kind=kind, observed_at=datetime.now())
        return self.last


class ProjectWatcher(LoggerMixin):
    """
    Watches the project tree for changes that should restart the child.

    One instance per effective config. On reload the owner closes this
    watcher and creates a new one.
    """

    def __init__(
        self,
        root: Path,
        config: EffectiveConfig,
        debouncer: RestartDebouncer,
        changes: ChangeLog,
        source: SubscribeFn = subscribe,
    ) -> None:
        """
        Initialize the project watcher.

        Args:
            root: Project root directory
            config: Effective config providing patterns and delays
            debouncer: Shared restart debouncer
            changes: Shared last-change holder
            source: Event source factory
        """
        self.root = root
        self.config = config
        self._debouncer = debouncer
        self._changes = changes
        self._source = source
        self._filter = PathFilter(config.watch, config.ignore_specs)
        self._subscription: Any = None
        self._closed = False

    def start(self) -> "ProjectWatcher":
        """Apply this config's delays and subscribe to the project root."""
        self._debouncer.configure(self.config.debounce_delay, self.config.restart_delay)
        self._subscription = self._source(self.root, self.handle_event)
        self.log.debug(
            "project_watcher_started",
            path=str(self.root),
            watch=self.config.watch_label,
            ignore=self.config.ignore_specs,
        )
        return self

    def relative(self, path: Path) -> str:
        """Forward-slash path relative to the project root."""
        rel = os.path.relpath(path, self.root)
        if rel == ".":
            return ""
        return to_posix(rel)

    def handle_event(self, kind: EventKind, path: Path) -> bool:
        """
        Filter one raw event and feed the debouncer.

        Returns:
            True if the event was accepted
        """
        if self._closed:
            return False

        rel = self.relative(path)
        if not self._filter.accepts(rel):
            return False

        if kind.is_file_event:
            self._changes.record(rel, kind)

        if self._debouncer.trigger():
            self.log.separator()
            self.log.info(f"Change in {rel}. Restarting...")
        return True

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop receiving events."""
        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.close()
        self.log.debug("project_watcher_closed")
