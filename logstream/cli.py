"""Command line interface for logstream."""

import asyncio
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import click
import httpx

from logstream.binding import LogStreamBinding
from logstream.config import load_settings
from logstream.events import GlobalEventStream
from logstream.formatters.base import BaseFormatter
from logstream.formatters.human import HumanFormatter
from logstream.formatters.json import JSONFormatter
from logstream.logging_config import configure_cli_logging
from logstream.models import AppEvent, ConnectionState, FeedStatus, StreamConfig, StreamStatus
from logstream.transport import ConnectionFactory

logger = logging.getLogger(__name__)


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    def signal_handler():
        logger.info("Received interrupt signal, stopping stream...")
        stop_event.set()

    # Windows doesn't support signal handlers in event loops
    if sys.platform != "win32":
        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGTERM, signal_handler)
        loop.add_signal_handler(signal.SIGINT, signal_handler)


class LogFollower:
    """Follows one execution's log stream and writes it through a formatter."""

    def __init__(self, execution_id: str, formatter: BaseFormatter, stream_config: StreamConfig,
                 connection_factory: Optional[ConnectionFactory] = None):
        """Initialize log follower."""
        self.execution_id = execution_id
        self.formatter = formatter
        self.stream_config = stream_config
        self.connection_factory = connection_factory
        self.outcome: Optional[str] = None
        self._written = 0
        self._last_notice: Optional[str] = None
        self._done: Optional[asyncio.Event] = None

    async def run(self, install_signals: bool = True) -> int:
        """Stream until the execution finishes, retries run out, or interrupted."""
        self._done = asyncio.Event()
        if install_signals:
            _install_signal_handlers(self._done)

        binding = LogStreamBinding(
            self.stream_config,
            on_complete=self._handle_complete,
            on_reconnect=self._handle_reconnect,
            on_state=self._handle_state,
            connection_factory=self.connection_factory
        )

        try:
            async with binding:
                binding.update(self.execution_id, enabled=True)
                controller = binding.controller
                self.formatter.output(self.formatter.format_header(self.execution_id, controller.url))
                await self._done.wait()
        finally:
            self.formatter.close()

        return 0 if self.outcome == "completed" else 1

    def _handle_state(self, state: ConnectionState) -> None:
        # Each epoch replays the execution from its first line
        for content in state.lines[self._written:]:
            self.formatter.output(self.formatter.format_line(content))
        self._written = max(self._written, len(state.lines))

        if state.is_reconnecting and state.error_message:
            if state.error_message != self._last_notice:
                self._last_notice = state.error_message
                self.formatter.output(self.formatter.format_reconnect(state.error_message, state.retry_count))
        elif state.status == StreamStatus.ERROR:
            self.formatter.output(self.formatter.format_error(state.error_message or "Connection lost"))
            self.outcome = "error"
            self._done.set()

    def _handle_reconnect(self) -> None:
        self._last_notice = None

    def _handle_complete(self, status: str, result: Optional[str]) -> None:
        self.formatter.output(self.formatter.format_complete(status, result))
        self.outcome = status
        self._done.set()


class EventTailer:
    """Writes global feed events through a formatter until interrupted."""

    def __init__(self, formatter: BaseFormatter, stream_config: StreamConfig,
                 connection_factory: Optional[ConnectionFactory] = None):
        self.formatter = formatter
        self.stream_config = stream_config
        self.connection_factory = connection_factory
        self.stream: Optional[GlobalEventStream] = None
        self._done: Optional[asyncio.Event] = None

    async def run(self, install_signals: bool = True) -> int:
        self._done = asyncio.Event()
        if install_signals:
            _install_signal_handlers(self._done)

        self.stream = GlobalEventStream(
            self.stream_config,
            on_any_event=self._handle_event,
            on_error=self._handle_error,
            connection_factory=self.connection_factory
        )
        try:
            self.stream.start()
            await self._done.wait()
        finally:
            self.stream.close()
            self.formatter.close()

        return 1 if self.stream.status == FeedStatus.ERROR else 0

    def _handle_event(self, event: AppEvent) -> None:
        self.formatter.output(self.formatter.format_event(event))

    def _handle_error(self) -> None:
        if self.stream.status == FeedStatus.ERROR:
            self.formatter.output(self.formatter.format_error(self.stream.error or "Connection lost"))
            self._done.set()


async def fetch_health(stream_config: StreamConfig,
                       transport: Optional[httpx.AsyncBaseTransport] = None) -> Dict[str, Any]:
    """Check dashboard server health."""
    url = urljoin(stream_config.base_url, "/api/health")
    async with httpx.AsyncClient(timeout=stream_config.connect_timeout, transport=transport) as client:
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Health check failed: %s", e)
            return {"status": "unhealthy", "error": str(e)}


def _make_formatter(output_json: bool, output: Optional[str]) -> BaseFormatter:
    output_file = open(output, 'w') if output else None
    if output_json:
        return JSONFormatter(output_file)
    return HumanFormatter(output_file)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--base-url', default=None, help='Dashboard server base URL (defaults to LOGSTREAM_BASE_URL)')
@click.pass_context
def cli(ctx, verbose, base_url):
    """logstream: follow agent execution logs in real time."""
    ctx.ensure_object(dict)

    settings = load_settings(base_url=base_url)
    configure_cli_logging(verbose, level=settings.log_level)

    ctx.obj['stream_config'] = settings.to_stream_config()


@cli.command()
@click.argument('execution_id')
@click.option('--json', 'output_json', is_flag=True, help='Output in JSON format')
@click.option('--output', '-o', type=click.Path(), help='Output file path')
@click.pass_context
def follow(ctx, execution_id, output_json, output):
    """Follow the log stream of an execution until it completes."""
    formatter = _make_formatter(output_json, output)
    follower = LogFollower(execution_id, formatter, ctx.obj['stream_config'])
    exit_code = asyncio.run(follower.run())
    sys.exit(exit_code)


@cli.command()
@click.option('--json', 'output_json', is_flag=True, help='Output in JSON format')
@click.pass_context
def events(ctx, output_json):
    """Tail the global event feed."""
    formatter = _make_formatter(output_json, None)
    tailer = EventTailer(formatter, ctx.obj['stream_config'])
    exit_code = asyncio.run(tailer.run())
    sys.exit(exit_code)


@cli.command()
@click.pass_context
def health(ctx):
    """Check dashboard server health."""
    health_info = asyncio.run(fetch_health(ctx.obj['stream_config']))
    click.echo(json.dumps(health_info, indent=2))
    if health_info.get("status") == "unhealthy":
        sys.exit(1)


@cli.command()
def version():
    """Show version information."""
    from logstream import __version__
    click.echo(f"logstream version {__version__}")


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
