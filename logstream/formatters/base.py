"""Base formatter for stream output."""

from abc import ABC, abstractmethod
from typing import Optional, TextIO

from logstream.models import AppEvent


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    def __init__(self, output_file: Optional[TextIO] = None):
        """Initialize formatter with optional output file."""
        self.output_file = output_file

    @abstractmethod
    def format_header(self, execution_id: str, url: str) -> str:
        """
        Format header shown before streaming starts.

        Args:
            execution_id: Execution being followed
            url: Stream URL

        Returns:
            Formatted header string
        """
        pass

    @abstractmethod
    def format_line(self, content: str) -> str:
        """
        Format a single log fragment.

        Args:
            content: Log fragment exactly as received

        Returns:
            Formatted string
        """
        pass

    @abstractmethod
    def format_reconnect(self, message: Optional[str], attempt: int) -> str:
        """Format a reconnect notice."""
        pass

    @abstractmethod
    def format_complete(self, status: str, result: Optional[str]) -> str:
        """Format the completion of an execution."""
        pass

    @abstractmethod
    def format_error(self, error: str) -> str:
        """Format a terminal stream error."""
        pass

    @abstractmethod
    def format_event(self, event: AppEvent) -> str:
        """Format one global feed event."""
        pass

    def output(self, text: str) -> None:
        """
        Output text to file or stdout.

        Args:
            text: Text to output
        """
        if not text:
            return
        if self.output_file:
            self.output_file.write(text)
            self.output_file.flush()
        else:
            print(text, end='', flush=True)

    def close(self) -> None:
        """Close output file if applicable."""
        if self.output_file and hasattr(self.output_file, 'close'):
            self.output_file.close()
