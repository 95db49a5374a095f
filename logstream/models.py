"""Data models for logstream."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

MAX_RECONNECT_ATTEMPTS = 5
RECONNECT_INTERVAL = 3.0  # seconds


class StreamStatus(str, Enum):
    """Status of an execution log stream."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    COMPLETED = "completed"
    ERROR = "error"


class ConnectionState(BaseModel):
    """Immutable snapshot of a log stream, replaced on every update."""

    model_config = ConfigDict(frozen=True)

    status: StreamStatus = StreamStatus.CONNECTING
    lines: tuple[str, ...] = ()
    error_message: Optional[str] = None
    retry_count: int = Field(default=0, ge=0)

    @property
    def is_terminal(self) -> bool:
        """Check if no further automatic transitions will happen."""
        return self.status in (StreamStatus.COMPLETED, StreamStatus.ERROR)

    @property
    def is_reconnecting(self) -> bool:
        """Check if a reconnect is pending or in progress."""
        return self.status == StreamStatus.CONNECTING and self.retry_count > 0


class FeedStatus(str, Enum):
    """Status of the global event feed."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


# Wire payloads

class LogPayload(BaseModel):
    """Payload of a ``log`` event."""

    content: str
    timestamp: Optional[int] = None


class CompletePayload(BaseModel):
    """Payload of a ``complete`` event."""

    status: str
    result: Optional[str] = None


class AppEvent(BaseModel):
    """Domain event delivered on the global event feed."""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: int = 0


@dataclass
class StreamConfig:
    """Configuration for stream clients."""

    base_url: str = "http://localhost:3456"
    reconnect_interval: float = RECONNECT_INTERVAL
    max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS
    connect_timeout: float = 10.0
    # Liveness comes from keepalive events, so reads never time out by default
    read_timeout: Optional[float] = None

    def execution_logs_path(self, execution_id: str) -> str:
        """Path of the log stream endpoint for an execution."""
        return f"/api/events/executions/{execution_id}/logs"
