"""
PyLens Child Process Supervisor.

Owns the lifecycle of the supervised entry process.
Requires Python 3.11+.
"""

import asyncio
import subprocess
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from pylens.utils.logger import LoggerMixin


@dataclass
class SupervisedProcess:
    """Handle to one spawned child."""

    process: asyncio.subprocess.Process
    started_at: float = field(default_factory=time.time)
    killed: bool = False

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    @property
    def running(self) -> bool:
        return self.process.returncode is None


class Supervisor(LoggerMixin):
    """
    Runs at most one child at a time.

    stdin is discarded, stdout/stderr are inherited. A child that exits
    with a non-zero code on its own is reported and otherwise left
    alone until the next restart.
    """

    def __init__(self, command: Sequence[str]) -> None:
        """
        Initialize the supervisor.

        Args:
            command: argv of the child, e.g. [python, entry, *args]
        """
        self.command = list(command)
        self._current: SupervisedProcess | None = None
        self._lock = asyncio.Lock()
        self._exit_watchers: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def current(self) -> SupervisedProcess | None:
        return self._current

    @property
    def pid(self) -> int | None:
        """PID of the live child, if any."""
        if self._current is not None and self._current.running:
            return self._current.pid
        return None

    async def start(self) -> SupervisedProcess | None:
        """
        Spawn the child. Kills the previous one first if still alive.

        Returns:
            The new handle, or None if spawning failed
        """
        async with self._lock:
            if self._closed:
                return None
            self.terminate()
            try:
                process = await asyncio.create_subprocess_exec(
                    *self.command,
                    stdin=subprocess.DEVNULL,
                )
            except OSError as e:
                self.log.error(f"Failed to start `{' '.join(self.command)}`: {e}")
                return None

            if self._closed:
                # stop() arrived while spawning
                process.kill()
                return None

            handle = SupervisedProcess(process)
            self._current = handle
            self.log.debug("child_started", pid=handle.pid)

            watcher = asyncio.create_task(self._wait_for_exit(handle))
            self._exit_watchers.add(watcher)
            watcher.add_done_callback(self._exit_watchers.discard)
            return handle

    async def restart(self) -> SupervisedProcess | None:
        """Terminate the current child and start a new one."""
        return await self.start()

    def terminate(self) -> None:
        """Send a kill signal to the current child without waiting."""
        handle = self._current
        if handle is None or not handle.running:
            return
        handle.killed = True
        try:
            handle.process.kill()
        except ProcessLookupError:
            return
        self.log.debug("child_killed", pid=handle.pid)

    async def _wait_for_exit(self, handle: SupervisedProcess) -> None:
        code = await handle.process.wait()
        self.log.debug("child_exited", pid=handle.pid, returncode=code)
        # Negative codes mean the child was ended by a signal. Windows
        # reports our own kill as exit code 1
        if code > 0 and not handle.killed:
            self.log.separator()
            self.log.error(f"Server crashed (exit code {code}). Waiting for changes...")

    def close(self) -> None:
        """Kill the child and refuse further starts."""
        self._closed = True
        self.terminate()
        for watcher in list(self._exit_watchers):
            watcher.cancel()
