"""Tests for pure ConnectionState transitions."""

import pytest
from pydantic import ValidationError

from logstream import state as transitions
from logstream.models import ConnectionState, StreamStatus


class TestStateTransitions:
    """Test snapshot-producing transitions."""

    def test_initial_state(self):
        """Test a fresh stream starts connecting with nothing buffered."""
        state = transitions.initial_state()
        assert state.status == StreamStatus.CONNECTING
        assert state.lines == ()
        assert state.error_message is None
        assert state.retry_count == 0

    def test_snapshot_is_frozen(self):
        """Test snapshots cannot be mutated."""
        state = transitions.initial_state()
        with pytest.raises(ValidationError):
            state.status = StreamStatus.CONNECTED

    def test_append_produces_new_snapshot(self):
        """Test appending never changes the previous snapshot."""
        connected = transitions.mark_connected(transitions.initial_state())
        first = transitions.append_line(connected, "a")
        second = transitions.append_line(first, "b")

        assert connected.lines == ()
        assert first.lines == ("a",)
        assert second.lines == ("a", "b")

    def test_append_ignored_after_completion(self):
        """Test completed streams accept no more lines."""
        state = transitions.append_line(transitions.initial_state(), "a")
        done = transitions.mark_completed(state)
        assert transitions.append_line(done, "b") is done

    def test_connection_lost_schedules_reconnect(self):
        """Test a failure below the bound asks for a reconnect."""
        state = transitions.append_line(transitions.mark_connected(transitions.initial_state()), "x")
        new_state, reconnect = transitions.connection_lost(state)

        assert reconnect is True
        assert new_state.status == StreamStatus.CONNECTING
        assert new_state.lines == ()
        assert new_state.retry_count == 1
        assert new_state.error_message == "Reconnecting... (attempt 1/5)"

    def test_connection_lost_at_bound_is_terminal(self):
        """Test a failure at the bound ends in error."""
        state = ConnectionState(retry_count=5)
        new_state, reconnect = transitions.connection_lost(state)

        assert reconnect is False
        assert new_state.status == StreamStatus.ERROR
        assert new_state.error_message == transitions.MAX_ATTEMPTS_MESSAGE
        assert new_state.retry_count == 5

    def test_connection_lost_after_completion(self):
        """Test failures after completion change nothing."""
        done = transitions.mark_completed(transitions.initial_state())
        new_state, reconnect = transitions.connection_lost(done)
        assert new_state is done
        assert reconnect is False

    def test_start_epoch_keeps_retries_for_automatic_reconnect(self):
        """Test automatic reconnects carry the retry counter."""
        lost, _ = transitions.connection_lost(transitions.initial_state())
        epoch = transitions.start_epoch(lost, reset_retries=False)

        assert epoch.retry_count == 1
        assert epoch.lines == ()
        assert epoch.error_message is None

    def test_start_epoch_resets_retries(self):
        """Test fresh starts and manual reconnects zero the counter."""
        state = ConnectionState(retry_count=4, error_message="Reconnecting... (attempt 4/5)")
        epoch = transitions.start_epoch(state, reset_retries=True)
        assert epoch.retry_count == 0
        assert epoch.error_message is None

    def test_mark_connected_only_from_connecting(self):
        """Test open signals do not resurrect terminal states."""
        done = transitions.mark_completed(transitions.initial_state())
        assert transitions.mark_connected(done) is done
