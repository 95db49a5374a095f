"""Tests for output formatters."""

import io
import json

from logstream.formatters import HumanFormatter, JSONFormatter
from logstream.models import AppEvent


class TestHumanFormatter:
    """Test human-readable output."""

    def setup_method(self):
        """Setup for each test."""
        self.formatter = HumanFormatter()

    def test_line_keeps_content(self):
        """Test fragments are written verbatim, one per line."""
        assert self.formatter.format_line("hello") == "hello\n"
        assert self.formatter.format_line("hello\n") == "hello\n"

    def test_status_notices(self):
        """Test reconnect, completion and error notices."""
        assert "Reconnecting... (attempt 2/5)" in self.formatter.format_reconnect("Reconnecting... (attempt 2/5)", 2)
        assert self.formatter.format_complete("completed", None) == "\n[Execution completed]\n"
        assert "boom" in self.formatter.format_complete("failed", "boom")
        assert "[Error: gone]" in self.formatter.format_error("gone")

    def test_header_can_be_hidden(self):
        """Test the header is optional."""
        assert HumanFormatter(show_header=False).format_header("e1", "http://x") == ""
        assert "e1" in self.formatter.format_header("e1", "http://x")

    def test_event(self):
        """Test feed events show type, subject and status."""
        event = AppEvent(type="execution:updated", payload={"id": "e1", "status": "running"})
        text = self.formatter.format_event(event)
        assert "execution:updated" in text
        assert "e1" in text
        assert "(running)" in text

    def test_output_to_file(self):
        """Test output goes to the given file."""
        buffer = io.StringIO()
        HumanFormatter(buffer).output("abc")
        assert buffer.getvalue() == "abc"


class TestJSONFormatter:
    """Test JSON lines output."""

    def test_records(self):
        """Test each record is a single JSON line."""
        formatter = JSONFormatter()
        assert json.loads(formatter.format_line("x")) == {"event": "log", "content": "x"}
        assert json.loads(formatter.format_complete("completed", None)) == {
            "event": "complete", "status": "completed", "result": None
        }
        record = json.loads(formatter.format_event(AppEvent(type="task:deleted", payload={"id": "t"})))
        assert record["type"] == "task:deleted"
