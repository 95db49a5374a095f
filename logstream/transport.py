"""SSE push-connection transport built on httpx and httpx-sse."""

import asyncio
import logging
from typing import Callable, Optional, Protocol

import httpx
from httpx_sse import aconnect_sse

from logstream.error_handler import StreamProtocolError, handle_stream_error
from logstream.models import StreamConfig

logger = logging.getLogger(__name__)


class StreamListener(Protocol):
    """Receives notifications from a push connection, one at a time."""

    def on_open(self, connection: "PushConnection") -> None:
        """Called once the server accepted the stream"""
        ...

    def on_event(self, connection: "PushConnection", event: str, data: str) -> None:
        """Called for every event, in delivery order"""
        ...

    def on_failure(self, connection: "PushConnection") -> None:
        """Called at most once when the connection ends without being closed locally"""
        ...


class PushConnection(Protocol):
    """Handle of one underlying push connection."""

    url: str

    @property
    def closed(self) -> bool:
        ...

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...


ConnectionFactory = Callable[[str, StreamListener], PushConnection]


class SSEConnection:
    """
    One Server-Sent Events connection.

    The connection is read by a single asyncio task that hands every
    notification to the listener synchronously. ``open`` and ``close`` never
    block; once ``close`` returns no further notification is dispatched.
    After a failure ``error_category`` holds the category of the exception
    that ended the stream, or None when the server simply closed it.
    """

    def __init__(self, url: str, listener: StreamListener,
                 config: Optional[StreamConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize SSE connection."""
        self.url = url
        self.config = config or StreamConfig()
        self._listener = listener
        self._transport = transport
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self._failed = False
        self.error_category: Optional[str] = None

    @property
    def closed(self) -> bool:
        """Check if the connection is closed, locally or by failure."""
        return self._closed

    def open(self) -> None:
        """Start reading the stream in the background."""
        if self._task is not None or self._closed:
            return
        logger.debug("Opening SSE connection: %s", self.url)
        self._task = asyncio.create_task(self._run())

    def close(self) -> None:
        """Close the connection. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        logger.debug("Closing SSE connection: %s", self.url)
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.config.connect_timeout,
            read=self.config.read_timeout,
            write=10.0,
            pool=10.0
        )

    async def _run(self) -> None:
        """Read events until the stream ends, fails or is closed."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout(), transport=self._transport) as client:
                async with aconnect_sse(client, "GET", self.url) as event_source:
                    response = event_source.response
                    if response.status_code != 200:
                        raise StreamProtocolError(
                            f"Stream request failed with status {response.status_code}",
                            status_code=response.status_code
                        )
                    content_type = response.headers.get("content-type", "")
                    if "text/event-stream" not in content_type:
                        raise StreamProtocolError(f"Unexpected content type: {content_type!r}")

                    if self._closed:
                        return
                    logger.info("SSE stream open: %s", self.url)
                    self._listener.on_open(self)

                    async for sse in event_source.aiter_sse():
                        if self._closed:
                            return
                        self._listener.on_event(self, sse.event, sse.data)

            logger.info("SSE stream ended by server: %s", self.url)
        except Exception as e:
            if not self._closed:
                self.error_category = handle_stream_error(self.url, e, logger)

        self._report_failure()

    def _report_failure(self) -> None:
        if self._closed or self._failed:
            return
        self._failed = True
        self._closed = True
        self._listener.on_failure(self)


def sse_connection_factory(config: Optional[StreamConfig] = None,
                           transport: Optional[httpx.AsyncBaseTransport] = None) -> ConnectionFactory:
    """Build a factory creating SSEConnection instances with shared settings."""
    def factory(url: str, listener: StreamListener) -> PushConnection:
        return SSEConnection(url, listener, config=config, transport=transport)
    return factory
