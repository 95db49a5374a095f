"""Real-time execution log streaming client for the agent workspace dashboard."""

from logstream.binding import LogStreamBinding
from logstream.controller import LogStreamController
from logstream.events import GlobalEventStream
from logstream.models import (
    MAX_RECONNECT_ATTEMPTS,
    RECONNECT_INTERVAL,
    AppEvent,
    ConnectionState,
    FeedStatus,
    StreamConfig,
    StreamStatus,
)

__version__ = "0.1.0"

__all__ = [
    "AppEvent",
    "ConnectionState",
    "FeedStatus",
    "GlobalEventStream",
    "LogStreamBinding",
    "LogStreamController",
    "MAX_RECONNECT_ATTEMPTS",
    "RECONNECT_INTERVAL",
    "StreamConfig",
    "StreamStatus",
]
