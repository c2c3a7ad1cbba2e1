"""
PyLens Restart Debouncer.

Coalesces bursts of change events into a single restart.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum

from pylens.utils.logger import LoggerMixin


class DebounceState(str, Enum):
    """Where the debouncer is within one restart cycle."""

    IDLE = "idle"
    PENDING = "pending"  # quiet-period timer armed
    FIRED = "fired"  # quiet period over, restart delay running


class RestartDebouncer(LoggerMixin):
    """
    Sliding-window debounce in front of a restart action.

    Each trigger cancels the armed timer and re-arms it with the full
    delay, so the action runs only after a quiet period. Once the quiet
    period elapses, the optional restart delay is a one-shot wait that
    further triggers do not extend.

    All methods must be called from the event loop thread.
    """

    def __init__(
        self,
        action: Callable[[], Awaitable[None]],
        delay_ms: int = 225,
        restart_delay_ms: int = 0,
        name: str = "restart",
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            action: Coroutine function to run once the window closes
            delay_ms: Quiet period in milliseconds
            restart_delay_ms: Extra fixed wait after the quiet period
            name: Label used in diagnostic events
        """
        self._action = action
        self._delay = delay_ms / 1000.0
        self._restart_delay = restart_delay_ms / 1000.0
        self._name = name
        self._timer: asyncio.TimerHandle | None = None
        self._delayed: dict[object, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    def configure(self, delay_ms: int, restart_delay_ms: int = 0) -> None:
        """Set new delays. Applies from the next trigger on."""
        self._delay = delay_ms / 1000.0
        self._restart_delay = restart_delay_ms / 1000.0

    @property
    def state(self) -> DebounceState:
        if self._timer is not None:
            return DebounceState.PENDING
        if self._delayed:
            return DebounceState.FIRED
        return DebounceState.IDLE

    @property
    def delay_ms(self) -> int:
        return round(self._delay * 1000)

    @property
    def restart_delay_ms(self) -> int:
        return round(self._restart_delay * 1000)

    def trigger(self) -> bool:
        """
        Arm or re-arm the quiet-period timer.

        Returns:
            True if this trigger opened a new coalescing window
        """
        if self._closed:
            return False

        loop = asyncio.get_running_loop()
        opened = self.state is DebounceState.IDLE

        if self._timer is not None:
            self._timer.cancel()

        self._timer = loop.call_later(self._delay, self._fire)
        self.log.debug("debounce_armed", name=self._name, delay_ms=self.delay_ms)
        return opened

    def _fire(self) -> None:
        self._timer = None
        if self._restart_delay > 0:
            loop = asyncio.get_running_loop()
            token = object()
            self._delayed[token] = loop.call_later(self._restart_delay, self._run_delayed, token)
        else:
            self._run_action()

    def _run_delayed(self, token: object) -> None:
        self._delayed.pop(token, None)
        self._run_action()

    def _run_action(self) -> None:
        self.log.debug("debounce_fired", name=self._name)
        task = asyncio.create_task(self._action())
        self._tasks.add(task)
        task.add_done_callback(self._action_done)

    def _action_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.log.error(f"{self._name.capitalize()} failed: {exc}")

    def cancel(self) -> None:
        """Cancel the armed quiet-period timer, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self.log.debug("debounce_cancelled", name=self._name)

    def close(self) -> None:
        """Cancel everything, including a fired restart still waiting out its delay."""
        self._closed = True
        self.cancel()
        for handle in self._delayed.values():
            handle.cancel()
        self._delayed.clear()
        for task in list(self._tasks):
            task.cancel()

    async def drain(self) -> None:
        """Wait for any running actions to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
