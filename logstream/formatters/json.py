"""JSON formatter for stream output."""

import json
from typing import Any, Dict, Optional, TextIO

from logstream.formatters.base import BaseFormatter
from logstream.models import AppEvent


class JSONFormatter(BaseFormatter):
    """JSON lines formatter for machine-readable output."""

    def __init__(self, output_file: Optional[TextIO] = None, pretty: bool = False):
        """Initialize JSON formatter."""
        super().__init__(output_file)
        self.pretty = pretty
        self.indent = 2 if pretty else None

    def format_header(self, execution_id: str, url: str) -> str:
        """Format header information as JSON."""
        return self._format_json({
            "event": "stream_start",
            "execution_id": execution_id,
            "url": url
        }) + "\n"

    def format_line(self, content: str) -> str:
        return self._format_json({"event": "log", "content": content}) + "\n"

    def format_reconnect(self, message: Optional[str], attempt: int) -> str:
        return self._format_json({
            "event": "reconnect",
            "attempt": attempt,
            "message": message
        }) + "\n"

    def format_complete(self, status: str, result: Optional[str]) -> str:
        return self._format_json({
            "event": "complete",
            "status": status,
            "result": result
        }) + "\n"

    def format_error(self, error: str) -> str:
        """Format error message as JSON."""
        return self._format_json({"event": "error", "error": error}) + "\n"

    def format_event(self, event: AppEvent) -> str:
        return self._format_json(event.model_dump()) + "\n"

    def _format_json(self, data: Dict[str, Any]) -> str:
        """Format data as JSON string."""
        return json.dumps(data, indent=self.indent, default=str)
