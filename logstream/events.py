"""Client for the dashboard's global event feed."""

import asyncio
import logging
from typing import Callable, Dict, Optional
from urllib.parse import urljoin

from pydantic import ValidationError

from logstream.models import AppEvent, FeedStatus, StreamConfig
from logstream.transport import (
    ConnectionFactory,
    PushConnection,
    sse_connection_factory,
)

logger = logging.getLogger(__name__)

EVENTS_PATH = "/api/events"
FEED_MAX_RECONNECT_ATTEMPTS = 10

EventHandler = Callable[[AppEvent], None]


class GlobalEventStream:
    """
    Subscribes to every domain event published by the server.

    Unlike the execution log stream this feed never completes; it runs
    until ``disconnect`` or ``close`` is called and keeps reconnecting on
    failures up to ``max_reconnect_attempts`` consecutive times.
    """

    def __init__(self, config: Optional[StreamConfig] = None,
                 handlers: Optional[Dict[str, EventHandler]] = None,
                 on_any_event: Optional[EventHandler] = None,
                 on_connect: Optional[Callable[[], None]] = None,
                 on_close: Optional[Callable[[], None]] = None,
                 on_error: Optional[Callable[[], None]] = None,
                 auto_reconnect: bool = True,
                 max_reconnect_attempts: int = FEED_MAX_RECONNECT_ATTEMPTS,
                 connection_factory: Optional[ConnectionFactory] = None):
        """Initialize global event stream."""
        self.config = config or StreamConfig()
        self.handlers: Dict[str, EventHandler] = dict(handlers or {})
        self.on_any_event = on_any_event
        self.on_connect = on_connect
        self.on_close = on_close
        self.on_error = on_error
        self.auto_reconnect = auto_reconnect
        self.max_reconnect_attempts = max_reconnect_attempts
        self._connection_factory = connection_factory or sse_connection_factory(self.config)
        self._connection: Optional[PushConnection] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._manual_disconnect = False

        self.status = FeedStatus.DISCONNECTED
        self.error: Optional[str] = None
        self.reconnect_attempts = 0

    @property
    def url(self) -> str:
        return urljoin(self.config.base_url, EVENTS_PATH)

    def on(self, event_type: str, handler: EventHandler) -> None:
        """Register the handler for one event type, replacing any previous one."""
        self.handlers[event_type] = handler

    def start(self) -> None:
        """Start following the feed."""
        self._manual_disconnect = False
        self._connect()

    def reconnect(self) -> None:
        """Reconnect now with a fresh attempt budget."""
        self._manual_disconnect = False
        self.reconnect_attempts = 0
        self._connect()

    def disconnect(self) -> None:
        """Stop following the feed and report it closed."""
        self._manual_disconnect = True
        self._teardown()
        self.status = FeedStatus.DISCONNECTED
        self.reconnect_attempts = 0
        if self.on_close is not None:
            self.on_close()

    def close(self) -> None:
        """Tear down silently. Idempotent."""
        self._manual_disconnect = True
        self._teardown()

    def _teardown(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and not task.done():
            task.cancel()
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def _connect(self) -> None:
        self._teardown()
        self.status = FeedStatus.CONNECTING
        self.error = None
        logger.info("Connecting to event feed: %s", self.url)
        self._connection = self._connection_factory(self.url, self)
        self._connection.open()

    def _schedule_reconnect(self) -> None:
        async def _reconnect_after_delay() -> None:
            await asyncio.sleep(self.config.reconnect_interval)
            self._reconnect_task = None
            if not self._manual_disconnect:
                self._connect()

        self._reconnect_task = asyncio.create_task(_reconnect_after_delay())

    # StreamListener notifications

    def on_open(self, connection: PushConnection) -> None:
        if connection is not self._connection:
            return
        self.status = FeedStatus.CONNECTED
        self.reconnect_attempts = 0
        self.error = None
        if self.on_connect is not None:
            self.on_connect()

    def on_event(self, connection: PushConnection, event: str, data: str) -> None:
        if connection is not self._connection or event != "message":
            return
        try:
            app_event = AppEvent.model_validate_json(data)
        except ValidationError:
            logger.debug("Ignoring unparseable feed payload: %r", data)
            return

        for handler in (self.on_any_event, self.handlers.get(app_event.type)):
            if handler is None:
                continue
            try:
                handler(app_event)
            except Exception as e:
                logger.error("Error in handler for %s event: %s", app_event.type, e, exc_info=True)

    def on_failure(self, connection: PushConnection) -> None:
        if connection is not self._connection:
            return
        self._connection = None

        if (not self._manual_disconnect and self.auto_reconnect
                and self.reconnect_attempts < self.max_reconnect_attempts):
            self.status = FeedStatus.CONNECTING
            self.reconnect_attempts += 1
            logger.info("Event feed lost, reconnecting (attempt %d/%d)",
                        self.reconnect_attempts, self.max_reconnect_attempts)
            self._schedule_reconnect()
        elif self.reconnect_attempts >= self.max_reconnect_attempts:
            logger.error("Event feed lost: max reconnection attempts reached")
            self.error = "Max reconnection attempts reached"
            self.status = FeedStatus.ERROR
        else:
            self.status = FeedStatus.DISCONNECTED

        if self.on_error is not None:
            self.on_error()
