"""
Tests for the Child Process Supervisor.

Requires Python 3.11+.
"""

import asyncio
import sys

from structlog.testing import capture_logs

from conftest import wait_for
from pylens.watcher.supervisor import Supervisor

SLEEPER = [sys.executable, "-c", "import time; time.sleep(30)"]
CRASHER = [sys.executable, "-c", "import sys; sys.exit(1)"]
CLEAN_EXIT = [sys.executable, "-c", "pass"]
LATE_CRASHER = [sys.executable, "-c", "import sys, time; time.sleep(0.3); sys.exit(1)"]


def _errors(logs: list[dict]) -> list[dict]:
    return [log for log in logs if log["log_level"] == "error"]


class TestSupervisor:
    """Test cases for Supervisor."""

    async def test_start_spawns_child(self):
        """Test that start() runs the command."""
        supervisor = Supervisor(SLEEPER)
        handle = await supervisor.start()
        try:
            assert handle is not None
            assert handle.running
            assert supervisor.pid == handle.pid
        finally:
            supervisor.close()
            await handle.process.wait()

    async def test_restart_replaces_child(self):
        """Test that only one child is alive after a restart."""
        supervisor = Supervisor(SLEEPER)
        first = await supervisor.start()
        second = await supervisor.restart()
        try:
            assert first is not None and second is not None
            assert first.pid != second.pid
            await asyncio.wait_for(first.process.wait(), timeout=5)
            assert not first.running
            assert second.running
            assert supervisor.current is second
        finally:
            supervisor.close()
            await second.process.wait()

    async def test_killed_child_is_not_a_crash(self):
        """Test that our own kill is not reported as a crash."""
        supervisor = Supervisor(SLEEPER)
        with capture_logs() as logs:
            handle = await supervisor.start()
            supervisor.terminate()
            await asyncio.wait_for(handle.process.wait(), timeout=5)
            await asyncio.sleep(0.05)
        assert handle.returncode is not None and handle.returncode < 0
        assert supervisor.pid is None
        assert _errors(logs) == []

    async def test_exit_code_after_our_kill_is_not_a_crash(self, monkeypatch):
        """Test that a positive exit code following our kill is not reported."""
        supervisor = Supervisor(LATE_CRASHER)
        with capture_logs() as logs:
            handle = await supervisor.start()
            # Platforms where a kill surfaces as exit code 1
            monkeypatch.setattr(handle.process, "kill", lambda: None)
            supervisor.terminate()
            await asyncio.wait_for(handle.process.wait(), timeout=5)
            await asyncio.sleep(0.05)

        assert handle.killed
        assert handle.returncode == 1
        assert _errors(logs) == []

    async def test_crash_logs_one_error(self):
        """Test that a non-zero exit without a signal is reported once."""
        supervisor = Supervisor(CRASHER)
        with capture_logs() as logs:
            handle = await supervisor.start()
            assert await wait_for(lambda: len(_errors(logs)) > 0)
            await asyncio.sleep(0.05)

        errors = _errors(logs)
        assert len(errors) == 1
        assert "exit code 1" in errors[0]["event"]
        assert handle.returncode == 1

        # Still usable afterwards
        supervisor.command = SLEEPER
        again = await supervisor.start()
        assert again is not None and again.running
        supervisor.close()
        await again.process.wait()

    async def test_clean_exit_is_silent(self):
        """Test that exit code 0 is not an error."""
        supervisor = Supervisor(CLEAN_EXIT)
        with capture_logs() as logs:
            handle = await supervisor.start()
            await handle.process.wait()
            await asyncio.sleep(0.05)
        assert _errors(logs) == []

    async def test_spawn_failure_is_logged(self, tmp_path):
        """Test that a missing interpreter is an error, not an exception."""
        supervisor = Supervisor([str(tmp_path / "no-such-python"), "app.py"])
        with capture_logs() as logs:
            handle = await supervisor.start()
        assert handle is None
        assert len(_errors(logs)) == 1

    async def test_close_refuses_new_children(self):
        """Test that nothing spawns after close()."""
        supervisor = Supervisor(SLEEPER)
        handle = await supervisor.start()
        supervisor.close()
        await asyncio.wait_for(handle.process.wait(), timeout=5)

        assert await supervisor.start() is None
        assert supervisor.current is handle
