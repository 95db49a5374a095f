"""Execution log stream controller with bounded automatic reconnects."""

import asyncio
import logging
from typing import Callable, List, Optional
from urllib.parse import quote, urljoin

from pydantic import ValidationError

from logstream import state as transitions
from logstream.models import (
    CompletePayload,
    ConnectionState,
    LogPayload,
    StreamConfig,
    StreamStatus,
)
from logstream.transport import (
    ConnectionFactory,
    PushConnection,
    sse_connection_factory,
)

logger = logging.getLogger(__name__)

CompleteCallback = Callable[[str, Optional[str]], None]
ReconnectCallback = Callable[[], None]
StateListener = Callable[[ConnectionState], None]


class LogStreamController:
    """
    Follows the log stream of one execution.

    The controller owns the active connection and the pending reconnect
    timer. All notifications (open, event, failure, timer) run on the event
    loop one at a time, and each one replaces ``state`` with a new snapshot.

    Epochs never overlap: the previous connection is closed and any timer
    cancelled before the next connection is opened.
    """

    def __init__(self, execution_id: str, config: Optional[StreamConfig] = None,
                 on_complete: Optional[CompleteCallback] = None,
                 on_reconnect: Optional[ReconnectCallback] = None,
                 connection_factory: Optional[ConnectionFactory] = None):
        """Initialize log stream controller."""
        self.execution_id = execution_id
        self.config = config or StreamConfig()
        self.on_complete = on_complete
        self.on_reconnect = on_reconnect
        self._connection_factory = connection_factory or sse_connection_factory(self.config)
        self._connection: Optional[PushConnection] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._listeners: List[StateListener] = []
        self._state = transitions.initial_state()
        self._connections_opened = 0
        self._running = False

    @property
    def state(self) -> ConnectionState:
        """Latest snapshot. Never mutated after it is published."""
        return self._state

    @property
    def connections_opened(self) -> int:
        """Number of connections opened since the controller was created."""
        return self._connections_opened

    @property
    def running(self) -> bool:
        return self._running

    @property
    def url(self) -> str:
        path = self.config.execution_logs_path(quote(self.execution_id, safe=""))
        return urljoin(self.config.base_url, path)

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback receiving every new snapshot."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # Control surface

    def start(self) -> None:
        """Start a fresh stream: epoch 0 with all counters reset."""
        logger.info("Starting log stream for execution %s", self.execution_id)
        self._running = True
        self._begin_epoch(is_reconnect=False, reset_retries=True)

    def reconnect(self) -> None:
        """Reconnect now, resetting the retry budget."""
        if not self._running:
            logger.debug("Ignoring reconnect for stopped stream %s", self.execution_id)
            return
        logger.info("Manual reconnect for execution %s", self.execution_id)
        self._begin_epoch(is_reconnect=True, reset_retries=True)

    def stop(self) -> None:
        """Close the connection and cancel any pending reconnect. Idempotent."""
        if self._running:
            logger.info("Stopping log stream for execution %s", self.execution_id)
        self._running = False
        self._teardown()

    # Epoch management

    def _teardown(self) -> None:
        self._cancel_reconnect_timer()
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def _begin_epoch(self, is_reconnect: bool, reset_retries: bool) -> None:
        """Tear down the current epoch and open the next one as one step."""
        self._teardown()

        if is_reconnect:
            self._notify("on_reconnect", self.on_reconnect)

        self._set_state(transitions.start_epoch(self._state, reset_retries=reset_retries))
        self._connections_opened += 1

        logger.debug("Opening connection %d for execution %s", self._connections_opened, self.execution_id)
        self._connection = self._connection_factory(self.url, self)
        self._connection.open()

    def _schedule_reconnect(self) -> None:
        """Open the next epoch after the reconnect interval."""
        self._cancel_reconnect_timer()

        async def _reconnect_after_delay() -> None:
            await asyncio.sleep(self.config.reconnect_interval)
            self._reconnect_task = None
            if self._running:
                self._begin_epoch(is_reconnect=True, reset_retries=False)

        logger.info("Reconnecting to execution %s in %.1fs (attempt %d/%d)",
                    self.execution_id, self.config.reconnect_interval,
                    self._state.retry_count, self.config.max_reconnect_attempts)
        self._reconnect_task = asyncio.create_task(_reconnect_after_delay())

    def _cancel_reconnect_timer(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and not task.done():
            task.cancel()

    def _set_state(self, new_state: ConnectionState) -> None:
        if new_state is self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                logger.error("Error in state listener: %s", e, exc_info=True)

    def _notify(self, name: str, callback: Optional[Callable], *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error("Error in %s callback for execution %s: %s", name, self.execution_id, e, exc_info=True)

    def _is_current(self, connection: PushConnection) -> bool:
        return self._running and connection is self._connection

    # StreamListener notifications

    def on_open(self, connection: PushConnection) -> None:
        if not self._is_current(connection):
            return
        logger.info("Log stream connected for execution %s", self.execution_id)
        self._set_state(transitions.mark_connected(self._state))

    def on_event(self, connection: PushConnection, event: str, data: str) -> None:
        if not self._is_current(connection):
            return
        if self._state.status == StreamStatus.COMPLETED:
            logger.debug("Dropping %s event after completion", event)
            return

        if event == "log":
            self._handle_log(data)
        elif event == "complete":
            self._handle_complete(connection, data)
        elif event == "keepalive":
            logger.debug("Keepalive from execution %s", self.execution_id)
        else:
            logger.debug("Ignoring unknown event type: %s", event)

    def on_failure(self, connection: PushConnection) -> None:
        if not self._is_current(connection):
            return
        self._connection = None

        new_state, should_reconnect = transitions.connection_lost(
            self._state, self.config.max_reconnect_attempts
        )
        if new_state.status == StreamStatus.ERROR and self._state.status != StreamStatus.ERROR:
            logger.error("Log stream for execution %s lost: max reconnection attempts reached",
                         self.execution_id)
        self._set_state(new_state)

        if should_reconnect:
            self._schedule_reconnect()

    def _handle_log(self, data: str) -> None:
        try:
            payload = LogPayload.model_validate_json(data)
        except ValidationError as e:
            logger.debug("Dropping malformed log payload %r: %s", data, e)
            return
        self._set_state(transitions.append_line(self._state, payload.content))

    def _handle_complete(self, connection: PushConnection, data: str) -> None:
        try:
            payload = CompletePayload.model_validate_json(data)
        except ValidationError as e:
            logger.debug("Dropping malformed complete payload %r: %s", data, e)
            return

        logger.info("Execution %s completed with status %s", self.execution_id, payload.status)
        self._set_state(transitions.mark_completed(self._state))
        connection.close()
        self._connection = None
        self._notify("on_complete", self.on_complete, payload.status, payload.result)
