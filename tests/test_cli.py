"""Tests for the command line interface."""

import asyncio
import io
import logging

import httpx
import pytest
from click.testing import CliRunner

from logstream import __version__
from logstream.cli import EventTailer, LogFollower, cli, fetch_health
from logstream.formatters import HumanFormatter, JSONFormatter
from logstream.models import StreamConfig


class CaptureBuffer(io.StringIO):
    """StringIO that survives the formatter closing it."""

    def close(self):
        pass


async def start(runner_coro):
    task = asyncio.create_task(runner_coro)
    await asyncio.sleep(0)
    return task


class TestLogFollower:
    """Test following an execution from the CLI runner."""

    @pytest.mark.asyncio
    async def test_follow_until_completed(self, stream_config, factory):
        """Test lines are written and a completed execution exits 0."""
        buffer = CaptureBuffer()
        follower = LogFollower("exec-1", HumanFormatter(buffer, show_header=False),
                               stream_config, connection_factory=factory)
        task = await start(follower.run(install_signals=False))

        conn = factory.latest
        conn.emit_open()
        conn.emit_log("step 1")
        conn.emit_log("step 2\n")
        conn.emit_complete("completed", "all good")

        assert await asyncio.wait_for(task, 1) == 0
        assert buffer.getvalue() == "step 1\nstep 2\n\n[Execution completed: all good]\n"
        assert conn.closed

    @pytest.mark.asyncio
    async def test_failed_execution_exits_1(self, stream_config, factory):
        """Test a failed execution outcome exits 1."""
        follower = LogFollower("exec-1", JSONFormatter(CaptureBuffer()),
                               stream_config, connection_factory=factory)
        task = await start(follower.run(install_signals=False))
        factory.latest.emit_complete("failed")

        assert await asyncio.wait_for(task, 1) == 1
        assert follower.outcome == "failed"

    @pytest.mark.asyncio
    async def test_reconnect_skips_replayed_lines(self, stream_config, factory):
        """Test a reconnect notice is written and lines replayed by the new epoch are not repeated."""
        buffer = CaptureBuffer()
        follower = LogFollower("exec-1", HumanFormatter(buffer, show_header=False),
                               stream_config, connection_factory=factory)
        task = await start(follower.run(install_signals=False))

        factory.latest.emit_open()
        factory.latest.emit_log("a")
        factory.latest.fail()
        await asyncio.sleep(0.05)
        factory.latest.emit_open()
        factory.latest.emit_log("a")
        factory.latest.emit_log("b")
        factory.latest.emit_complete("completed")

        assert await asyncio.wait_for(task, 1) == 0
        assert buffer.getvalue() == (
            "a\n\n[Reconnecting... (attempt 1/5)]\nb\n\n[Execution completed]\n"
        )

    @pytest.mark.asyncio
    async def test_exhausted_retries_exit_1(self, factory):
        """Test giving up on the connection ends the run with an error."""

        buffer = CaptureBuffer()
        config = StreamConfig(base_url="http://dashboard.test", reconnect_interval=0.01, max_reconnect_attempts=0)
        follower = LogFollower("exec-1", HumanFormatter(buffer, show_header=False),
                               config, connection_factory=factory)
        task = await start(follower.run(install_signals=False))
        factory.latest.fail()

        assert await asyncio.wait_for(task, 1) == 1
        assert "Max reconnection attempts reached" in buffer.getvalue()
        assert factory.live == []


class TestEventTailer:
    """Test tailing the global feed."""

    @pytest.mark.asyncio
    async def test_events_written_until_error(self, stream_config, factory):
        """Test events are formatted and an exhausted feed exits 1."""
        buffer = CaptureBuffer()
        tailer = EventTailer(JSONFormatter(buffer), stream_config, connection_factory=factory)
        task = await start(tailer.run(install_signals=False))
        tailer.stream.max_reconnect_attempts = 0

        factory.latest.emit_open()
        factory.latest.emit("message", '{"type": "task:created", "payload": {"id": "t1"}, "timestamp": 5}')
        factory.latest.fail()

        assert await asyncio.wait_for(task, 1) == 1
        assert '"task:created"' in buffer.getvalue()
        assert "Max reconnection attempts reached" in buffer.getvalue()


class TestHealth:
    """Test the health check."""

    @pytest.mark.asyncio
    async def test_healthy(self, stream_config):
        """Test the server response is returned as-is."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"status": "healthy"}))
        assert await fetch_health(stream_config, transport=transport) == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_unhealthy(self, stream_config):
        """Test HTTP failures are reported as unhealthy."""
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        result = await fetch_health(stream_config, transport=transport)
        assert result["status"] == "unhealthy"


class TestCommands:
    """Test click commands."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        """Undo the logging setup each command performs."""
        root = logging.getLogger()
        level, handlers = root.level, root.handlers[:]
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_version(self):
        """Test version output."""
        result = CliRunner().invoke(cli, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_base_url(self):
        """Test configuration errors surface before streaming."""
        result = CliRunner().invoke(cli, ["--base-url", "nope", "version"])
        assert result.exit_code != 0

    @pytest.mark.parametrize("args,env,expected", [
        (["version"], {"LOGSTREAM_LOG_LEVEL": "error"}, logging.ERROR),
        (["--verbose", "version"], {"LOGSTREAM_LOG_LEVEL": "error"}, logging.DEBUG),
    ])
    def test_log_level_from_settings(self, args, env, expected):
        """Test the configured log level is applied unless --verbose is given."""
        result = CliRunner().invoke(cli, args, env=env)

        assert result.exit_code == 0
        assert logging.getLogger().level == expected
