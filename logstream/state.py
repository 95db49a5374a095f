"""
Pure transitions over ConnectionState snapshots.

Every function takes the previous snapshot and returns a new one. Nothing
here touches connections, timers or callbacks; the controller decides when
to call these and performs the side effects afterwards.
"""

from typing import Optional

from logstream.models import (
    MAX_RECONNECT_ATTEMPTS,
    ConnectionState,
    StreamStatus,
)

MAX_ATTEMPTS_MESSAGE = "Connection lost. Max reconnection attempts reached."


def reconnecting_message(attempt: int, max_attempts: int = MAX_RECONNECT_ATTEMPTS) -> str:
    """Progress message shown while waiting to reconnect."""
    return f"Reconnecting... (attempt {attempt}/{max_attempts})"


def initial_state() -> ConnectionState:
    """State of a stream that has not been started yet."""
    return ConnectionState()


def start_epoch(previous: Optional[ConnectionState], reset_retries: bool) -> ConnectionState:
    """
    Begin a new connection epoch.

    Lines and error text always start empty. The retry counter survives
    automatic reconnects and is zeroed for fresh starts and manual
    reconnects.
    """
    retry_count = 0
    if previous is not None and not reset_retries:
        retry_count = previous.retry_count
    return ConnectionState(
        status=StreamStatus.CONNECTING,
        lines=(),
        error_message=None,
        retry_count=retry_count,
    )


def mark_connected(state: ConnectionState) -> ConnectionState:
    """Transport reported the connection open."""
    if state.status != StreamStatus.CONNECTING:
        return state
    return state.model_copy(update={"status": StreamStatus.CONNECTED})


def append_line(state: ConnectionState, content: str) -> ConnectionState:
    """Append one log fragment, producing a new lines tuple."""
    if state.is_terminal:
        return state
    return state.model_copy(update={"lines": state.lines + (content,)})


def mark_completed(state: ConnectionState) -> ConnectionState:
    """Producer reported the execution finished."""
    if state.is_terminal:
        return state
    return state.model_copy(update={"status": StreamStatus.COMPLETED})


def connection_lost(
    state: ConnectionState, max_attempts: int = MAX_RECONNECT_ATTEMPTS
) -> tuple[ConnectionState, bool]:
    """
    Apply a connection-level failure.

    Returns the new state and whether a reconnect should be scheduled.
    """
    if state.is_terminal:
        return state, False

    if state.retry_count < max_attempts:
        attempt = state.retry_count + 1
        new_state = ConnectionState(
            status=StreamStatus.CONNECTING,
            lines=(),
            error_message=reconnecting_message(attempt, max_attempts),
            retry_count=attempt,
        )
        return new_state, True

    new_state = state.model_copy(update={
        "status": StreamStatus.ERROR,
        "error_message": MAX_ATTEMPTS_MESSAGE,
    })
    return new_state, False
