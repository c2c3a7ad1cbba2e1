"""
PyLens Watch Controller.

Owns the effective config, the child process, the restart timer and
both watchers for the lifetime of one `pylens <entry>` run.
Requires Python 3.11+.
"""

import asyncio
import signal
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from pylens.utils.config import EffectiveConfig, build_effective_config, get_settings
from pylens.utils.logger import RESET, LoggerMixin, configure_logging, ensure_logging, set_log_style
from pylens.utils.store import ConfigStore
from pylens.watcher.config_watcher import ConfigWatcher
from pylens.watcher.console import RuntimeConsole
from pylens.watcher.debouncer import RestartDebouncer
from pylens.watcher.event_source import SubscribeFn, subscribe
from pylens.watcher.file_watcher import ChangeLog, ProjectWatcher
from pylens.watcher.supervisor import Supervisor

GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"


class WatchController(LoggerMixin):
    """
    Single owner of all mutable watcher state.

    Everything runs on one event loop: filesystem callbacks, timers,
    console lines and child exits never run concurrently, so no
    locking is needed around the shared state.
    """

    def __init__(
        self,
        entry: str | Path,
        args: Sequence[str] = (),
        project_root: Path | None = None,
        source: SubscribeFn = subscribe,
        console_out: TextIO | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            entry: Entry script to supervise
            args: Extra arguments passed to the entry script
            project_root: Directory to watch and to read config from,
                defaults to the working directory
            source: Event source factory shared by both watchers
            console_out: Stream for console command output
        """
        settings = get_settings()
        self.entry = str(entry)
        entry_path = Path(entry).resolve()
        self.project_root = project_root or Path.cwd()
        self.store = ConfigStore(self.project_root)
        self._source = source

        self.silent_override: bool | None = None
        self.config: EffectiveConfig = build_effective_config(None, self.project_root)

        self.supervisor = Supervisor([settings.interpreter, str(entry_path), *args])
        self.changes = ChangeLog()
        self.debouncer = RestartDebouncer(self.supervisor.restart)
        self.console = RuntimeConsole(self, out=console_out)

        self.project_watcher: ProjectWatcher | None = None
        self.config_watcher: ConfigWatcher | None = None
        self._stopped = asyncio.Event()
        self._shutting_down = False

    def apply_config(self, config: EffectiveConfig) -> None:
        """Make config the effective one and update the log style."""
        self.config = config
        set_log_style(
            label=config.log_label,
            timestamp=config.log_timestamp,
            silent=config.silent_logs,
            log_file=config.log_file,
        )

    def load_config(self) -> EffectiveConfig:
        """Build the startup config from the persisted document."""
        config = build_effective_config(
            self.store.load(), self.project_root, silent_override=self.silent_override
        )
        self.apply_config(config)
        return config

    def _new_project_watcher(self) -> ProjectWatcher:
        return ProjectWatcher(
            self.project_root,
            self.config,
            self.debouncer,
            self.changes,
            source=self._source,
        ).start()

    def on_config_reload(self, config: EffectiveConfig) -> None:
        """Swap in a reloaded config and rebuild the project watcher."""
        if self._shutting_down:
            return
        # A restart already past its quiet period still runs
        self.debouncer.cancel()
        if self.project_watcher is not None:
            self.project_watcher.close()
        self.apply_config(config)
        self.project_watcher = self._new_project_watcher()
        self.log.debug("project_watcher_rebuilt", watch=config.watch_label)

    def set_silent(self, silent: bool) -> None:
        """Manual silent mode. Wins over the document until exit."""
        self.silent_override = silent
        self.config = self.config.model_copy(update={"silent_logs": silent})
        set_log_style(silent=silent)

    async def restart_now(self) -> None:
        """Drop any pending debounce and restart immediately."""
        self.log.separator()
        self.log.info("Restarting server...")
        self.debouncer.cancel()
        await self.supervisor.restart()

    async def stop(self) -> None:
        """Stop everything and let run() return."""
        self.log.separator()
        self.log.info("Stopping pylens...")
        self.shutdown()

    def shutdown(self) -> None:
        """Close both watchers, the console and the child. Idempotent."""
        if self._shutting_down:
            return
        self._shutting_down = True
        self.console.close()
        self.debouncer.close()
        if self.project_watcher is not None:
            self.project_watcher.close()
        if self.config_watcher is not None:
            self.config_watcher.close()
        self.supervisor.close()
        self._stopped.set()

    def _on_signal(self, signame: str) -> None:
        self.log.debug("signal_received", signal=signame)
        self.console.close()
        self.shutdown()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig.name)
            except (NotImplementedError, RuntimeError):
                # Windows fallback
                signal.signal(
                    sig,
                    lambda signum, frame: loop.call_soon_threadsafe(
                        self._on_signal, signal.Signals(signum).name
                    ),
                )

    def _announce(self) -> None:
        settings = get_settings()
        self.log.separator()
        self.log.info(f"{GREEN}Starting `python {self.entry}`{RESET}")
        if self.store.exists():
            self.log.info(f"Using {YELLOW}{settings.config_filename}{RESET}")
        else:
            self.log.info(f"Using {YELLOW}default config{RESET}")
        self.log.info("Watching for file changes...")

    async def run(self, attach_console: bool = True) -> int:
        """
        Start the child, the watchers and the console, then wait for stop.

        Returns:
            Process exit code
        """
        ensure_logging()
        self.load_config()
        await self.supervisor.start()
        self._announce()

        if attach_console:
            await self.console.attach()

        self.project_watcher = self._new_project_watcher()
        self.config_watcher = ConfigWatcher(
            self.store,
            self.on_config_reload,
            silent_override=lambda: self.silent_override,
            source=self._source,
        ).start()
        self._install_signal_handlers()

        await self._stopped.wait()
        await self.debouncer.drain()
        return 0


def start_watcher(entry: str | Path, args: Sequence[str] = ()) -> int:
    """
    Supervise entry until `stop` or a signal.

    Returns:
        Process exit code
    """
    configure_logging()
    return asyncio.run(WatchController(entry, args).run())
