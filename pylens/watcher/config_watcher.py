"""
PyLens Config Watcher.

Reloads the persisted config when it changes on disk.
Requires Python 3.11+.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

from pylens.errors import ConfigError
from pylens.utils.config import DEFAULT_CONFIG, EffectiveConfig, build_effective_config
from pylens.utils.logger import LoggerMixin
from pylens.utils.store import ConfigStore
from pylens.watcher.debouncer import RestartDebouncer
from pylens.watcher.event_source import EventKind, SubscribeFn, subscribe

ReloadCallback = Callable[[EffectiveConfig], Any]


class ConfigWatcher(LoggerMixin):
    """
    Watches the state directory for edits to the config document.

    Uses its own debounce timer, always at the default delay, so the
    timing never depends on the config being reloaded.
    """

    def __init__(
        self,
        store: ConfigStore,
        on_reload: ReloadCallback,
        silent_override: Callable[[], bool | None] = lambda: None,
        source: SubscribeFn = subscribe,
    ) -> None:
        """
        Initialize the config watcher.

        Args:
            store: Config store for the project
            on_reload: Called with the new EffectiveConfig after a good reload
            silent_override: Returns the manual silent mode, if set
            source: Event source factory
        """
        self.store = store
        self._on_reload = on_reload
        self._silent_override = silent_override
        self._source = source
        self._debouncer = RestartDebouncer(
            self.reload, delay_ms=DEFAULT_CONFIG.debounce_delay, name="config reload"
        )
        self._subscription: Any = None
        self._closed = False

    def start(self) -> "ConfigWatcher":
        """Subscribe to the state directory, creating it if needed."""
        state_dir = self.store.ensure_state_dir()
        self._subscription = self._source(state_dir, self.handle_event)
        self.log.debug("config_watcher_started", path=str(state_dir))
        return self

    def handle_event(self, kind: EventKind, path: Path) -> bool:
        """Debounce events that touch the config document."""
        if self._closed or path.name != self.store.config_path.name:
            return False
        self._debouncer.trigger()
        return True

    async def reload(self) -> EffectiveConfig | None:
        """
        Re-read the document and hand the new config to the owner.

        An unreadable document is reported and the previous config stays.
        """
        if self._closed:
            return None

        name = self.store.config_path.name
        self.log.separator()
        self.log.info(f"{name} changed. Reloading config...")

        try:
            document = self.store.read()
        except ConfigError as e:
            self.log.warning(f"Config unreadable ({e}). Keeping previous...")
            return None

        config = build_effective_config(
            document, self.store.root, silent_override=self._silent_override()
        )
        self._on_reload(config)
        return config

    def close(self) -> None:
        """Stop watching and drop any pending reload."""
        if self._closed:
            return
        self._closed = True
        self._debouncer.close()
        if self._subscription is not None:
            self._subscription.close()
        self.log.debug("config_watcher_closed")
