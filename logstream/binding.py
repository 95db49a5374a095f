"""Binds a log stream controller to an observation scope."""

import logging
from typing import Optional

from logstream import state as transitions
from logstream.controller import (
    CompleteCallback,
    LogStreamController,
    ReconnectCallback,
    StateListener,
)
from logstream.models import ConnectionState, StreamConfig
from logstream.transport import ConnectionFactory

logger = logging.getLogger(__name__)


class LogStreamBinding:
    """
    Keeps at most one controller alive for the observed execution.

    ``update`` is called whenever the observed execution id or the enabled
    flag may have changed, ``close`` when the scope goes away. Changing the
    id or re-enabling always starts from a clean controller.
    """

    def __init__(self, config: Optional[StreamConfig] = None,
                 on_complete: Optional[CompleteCallback] = None,
                 on_reconnect: Optional[ReconnectCallback] = None,
                 on_state: Optional[StateListener] = None,
                 connection_factory: Optional[ConnectionFactory] = None):
        """Initialize log stream binding."""
        self.config = config or StreamConfig()
        self._on_complete = on_complete
        self._on_reconnect = on_reconnect
        self._on_state = on_state
        self._connection_factory = connection_factory
        self._execution_id: Optional[str] = None
        self._enabled = False
        self._controller: Optional[LogStreamController] = None
        self._idle_state = transitions.initial_state()

    @property
    def execution_id(self) -> Optional[str]:
        return self._execution_id

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def controller(self) -> Optional[LogStreamController]:
        return self._controller

    @property
    def state(self) -> ConnectionState:
        """Latest snapshot of the active stream, or the initial snapshot when idle."""
        if self._controller is None:
            return self._idle_state
        return self._controller.state

    def set_callbacks(self, on_complete: Optional[CompleteCallback] = None,
                      on_reconnect: Optional[ReconnectCallback] = None) -> None:
        """Replace the callbacks, including on the running controller."""
        self._on_complete = on_complete
        self._on_reconnect = on_reconnect
        if self._controller is not None:
            self._controller.on_complete = on_complete
            self._controller.on_reconnect = on_reconnect

    def update(self, execution_id: Optional[str], enabled: bool = True) -> None:
        """
        Reconcile the active stream with the observed execution.

        Args:
            execution_id: Execution to follow, or None
            enabled: Whether streaming is wanted at all
        """
        active = bool(execution_id) and enabled
        unchanged = (execution_id == self._execution_id and enabled == self._enabled)
        self._execution_id = execution_id
        self._enabled = enabled

        if unchanged and (self._controller is not None) == active:
            return

        self._teardown()
        if active:
            self._start()

    def reconnect(self) -> None:
        """Explicit reconnect. No-op when disabled or without an execution id."""
        if not self._enabled or not self._execution_id:
            return
        if self._controller is None:
            self._start()
            return
        self._controller.reconnect()

    def close(self) -> None:
        """Stop streaming. Unconditional and safe to call repeatedly."""
        self._enabled = False
        self._teardown()

    def _start(self) -> None:
        controller = LogStreamController(
            self._execution_id,
            config=self.config,
            on_complete=self._on_complete,
            on_reconnect=self._on_reconnect,
            connection_factory=self._connection_factory
        )
        if self._on_state is not None:
            controller.add_listener(self._on_state)
        self._controller = controller
        controller.start()

    def _teardown(self) -> None:
        controller = self._controller
        self._controller = None
        if controller is not None:
            logger.debug("Tearing down log stream for execution %s", controller.execution_id)
            controller.stop()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        self.close()
