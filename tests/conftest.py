"""
PyLens Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import asyncio
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from pylens.utils.logger import configure_logging, set_log_style
from pylens.watcher.event_source import EventKind


class FakeSubscription:
    """Stands in for a watchdog subscription; events are emitted by hand."""

    def __init__(self, root: Path, callback: Callable[[EventKind, Path], Any]) -> None:
        self.root = root
        self.callback = callback
        self.closed = False

    def emit(self, kind: EventKind, path: Path | str) -> Any:
        return self.callback(kind, Path(path))

    def close(self) -> None:
        self.closed = True


class FakeSource:
    """Event source factory recording every subscription it hands out."""

    def __init__(self) -> None:
        self.subscriptions: list[FakeSubscription] = []

    def __call__(self, root: Path, callback: Callable[[EventKind, Path], Any]) -> FakeSubscription:
        sub = FakeSubscription(root, callback)
        self.subscriptions.append(sub)
        return sub

    def latest(self, root: Path) -> FakeSubscription:
        """Most recent open subscription for root."""
        for sub in reversed(self.subscriptions):
            if sub.root == root and not sub.closed:
                return sub
        raise LookupError(f"no open subscription for {root}")


@pytest.fixture(autouse=True)
def logging_setup() -> Iterator[None]:
    """Uncached loggers so capture_logs sees every call; default style."""
    configure_logging(cache_logger_on_first_use=False)
    set_log_style(label=True, timestamp=False, silent=False, log_file=None)
    yield
    set_log_style(label=True, timestamp=False, silent=False, log_file=None)


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory with a long-running entry script, used as the working directory."""
    root = tmp_path / "project"
    root.mkdir()
    monkeypatch.chdir(root)
    (root / "app.py").write_text("import time\ntime.sleep(60)\n")
    (root / "src").mkdir()
    return root


@pytest.fixture
def python() -> str:
    return sys.executable


async def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll predicate on the running loop until it holds or time runs out."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.02)
    return predicate()
