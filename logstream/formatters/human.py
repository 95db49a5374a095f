"""Human-readable formatter for stream output."""

from datetime import datetime
from typing import Optional, TextIO

from logstream.formatters.base import BaseFormatter
from logstream.models import AppEvent


class HumanFormatter(BaseFormatter):
    """Writes log fragments verbatim with bracketed status notices."""

    def __init__(self, output_file: Optional[TextIO] = None, show_header: bool = True):
        """Initialize human formatter."""
        super().__init__(output_file)
        self.show_header = show_header

    def format_header(self, execution_id: str, url: str) -> str:
        if not self.show_header:
            return ""
        return f"Following execution {execution_id}\nStream: {url}\n\n"

    def format_line(self, content: str) -> str:
        if content.endswith("\n"):
            return content
        return content + "\n"

    def format_reconnect(self, message: Optional[str], attempt: int) -> str:
        # Lines of the dropped connection are replayed by the server
        notice = message or f"Reconnecting... (attempt {attempt})"
        return f"\n[{notice}]\n"

    def format_complete(self, status: str, result: Optional[str]) -> str:
        if result:
            return f"\n[Execution {status}: {result}]\n"
        return f"\n[Execution {status}]\n"

    def format_error(self, error: str) -> str:
        return f"\n[Error: {error}]\n"

    def format_event(self, event: AppEvent) -> str:
        if event.timestamp:
            time_str = datetime.fromtimestamp(event.timestamp / 1000).strftime("%H:%M:%S")
        else:
            time_str = "--:--:--"
        subject = event.payload.get("id") or event.payload.get("taskId") or event.payload.get("executionId", "")
        status = event.payload.get("status")
        text = f"{time_str}  {event.type:<20} {subject}"
        if status:
            text += f"  ({status})"
        return text + "\n"
