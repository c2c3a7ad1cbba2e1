"""
PyLens Runtime Console.

Line-oriented commands read from stdin while the watcher runs.
Requires Python 3.11+.
"""

import asyncio
import sys
import threading
from datetime import datetime
from typing import TYPE_CHECKING, TextIO

from pylens.utils.logger import RESET, LoggerMixin

if TYPE_CHECKING:
    from pylens.watcher.controller import WatchController

YELLOW = "\x1b[33m"
RULE = "-" * 25
CLEAR_SCREEN = "\x1b[2J\x1b[3J\x1b[H"

HELP_LINES = [
    " rs ............. Restarts server",
    " stop/x ......... Stops pylens",
    " status/stats ... Shows watcher status",
    " last-change/lc . Shows last file change",
    " silent [on|off]  Toggles silent logs",
    " help/h/? ....... Shows this help",
    " clear/cls ...... Clears console",
]


def format_ago(timestamp: datetime, now: datetime | None = None) -> str:
    """Format elapsed time like '1h, 2m, 3s ago'."""
    now = now or datetime.now()
    total = max(0, int((now - timestamp).total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{seconds}s")
    return ", ".join(parts) + " ago"


def on_off(flag: bool) -> str:
    return "ON" if flag else "OFF"


class RuntimeConsole(LoggerMixin):
    """
    Dispatches console commands onto the controller.

    Commands are trimmed and case-insensitive. Each line is handled to
    completion before the next one is read.
    """

    def __init__(self, controller: "WatchController", out: TextIO | None = None) -> None:
        self.controller = controller
        self.out = out or sys.stdout
        self._reader: threading.Thread | None = None
        self._task: asyncio.Task[None] | None = None
        self._closed = False

    def _print(self, text: str = "") -> None:
        print(text, file=self.out, flush=True)

    async def handle_line(self, raw: str) -> bool:
        """
        Run one command line.

        Returns:
            False if the line was not a known command
        """
        line = raw.strip()
        if not line:
            return True

        cmd = line.lower()
        words = cmd.split()

        if cmd in ("clear", "cls"):
            self.out.write(CLEAR_SCREEN)
            self.out.flush()
        elif cmd in ("help", "h", "?"):
            self.print_help()
        elif cmd in ("status", "stats"):
            self.print_status()
        elif cmd in ("last-change", "lc"):
            self.print_last_change()
        elif words[0] == "silent" and len(words) <= 2:
            self.toggle_silent(words[1] if len(words) == 2 else None)
        elif cmd == "rs":
            await self.controller.restart_now()
        elif cmd in ("stop", "x"):
            await self.controller.stop()
        else:
            self.log.separator()
            self.log.error(f'Command not found: "{line}". Run "help" for commands list.')
            return False
        return True

    def print_help(self) -> None:
        self._print(RULE)
        self._print(f"{YELLOW}pylens Runtime Commands:{RESET}")
        for entry in HELP_LINES:
            self._print(entry)

    def print_status(self) -> None:
        config = self.controller.config
        pid = self.controller.supervisor.pid
        self._print(RULE)
        self._print(f"{YELLOW}pylens Status:{RESET}")
        self._print(f" Server PID .... {pid if pid is not None else 'not running'}")
        self._print(f" Watching ...... {config.watch_label}")
        self._print(f" Ignoring ...... {', '.join(config.ignore)}")
        self._print(f" Debounce ...... {config.debounce_delay}ms")
        self._print(f" Restart Delay . {config.restart_delay}ms")
        self._print(f" Silent Logs ... {on_off(config.silent_logs)}")
        self._print(f" Save Logs ..... {on_off(config.save_logs)}")
        self._print(f" Log File ...... {config.log_file}")

    def print_last_change(self) -> None:
        change = self.controller.changes.last
        if change is None:
            self.log.info("No changes recorded yet.")
            return

        self._print(RULE)
        self._print(f"{YELLOW}Last Change:{RESET}")
        self._print(f"File ..... {change.rel_path}")
        self._print(f"Event .... {change.kind.value}")
        self._print(
            f"Time ..... {change.observed_at.strftime('%H:%M:%S')} ({format_ago(change.observed_at)})"
        )

    def toggle_silent(self, action: str | None) -> None:
        self.log.separator()
        current = self.controller.config.silent_logs

        if action in ("on", "off"):
            wanted = action == "on"
            if wanted == current:
                self._print(f"Silent logs already {on_off(current)}.")
                return
        elif action is None:
            wanted = not current
        else:
            self.log.error(f'Unknown silent mode: "{action}". Use "silent on" or "silent off".')
            return

        self.controller.set_silent(wanted)
        self._print(f"Silent logs: {on_off(wanted)}")

    async def attach(self, stream: TextIO | None = None) -> bool:
        """
        Start reading commands from a pipe or terminal.

        Lines are read on a daemon thread with blocking reads, so the
        descriptor flags the child inherits are left untouched.

        Returns:
            False if there is no readable stream
        """
        stream = stream or sys.stdin
        if stream is None or stream.closed:
            self.log.debug("console_unavailable")
            return False

        loop = asyncio.get_running_loop()
        lines: asyncio.Queue[str] = asyncio.Queue()
        self._reader = threading.Thread(
            target=self._pump,
            args=(stream, loop, lines),
            name="pylens-console",
            daemon=True,
        )
        self._reader.start()
        self._task = asyncio.create_task(self.run(lines))
        return True

    def _pump(
        self,
        stream: TextIO,
        loop: asyncio.AbstractEventLoop,
        lines: "asyncio.Queue[str]",
    ) -> None:
        # Runs on the reader thread; "" marks end of input
        while not self._closed:
            try:
                line = stream.readline()
            except (OSError, ValueError):
                line = ""
            try:
                loop.call_soon_threadsafe(lines.put_nowait, line)
            except RuntimeError:
                return
            if not line:
                return

    async def run(self, lines: "asyncio.Queue[str]") -> None:
        """Dispatch queued lines until end of input or close."""
        while not self._closed:
            line = await lines.get()
            if not line:
                self.log.debug("console_eof")
                return
            await self.handle_line(line)

    def close(self) -> None:
        """Stop dispatching input. The stream itself is left open."""
        if self._closed:
            return
        self._closed = True
        current = asyncio.current_task()
        if self._task is not None and self._task is not current:
            self._task.cancel()
