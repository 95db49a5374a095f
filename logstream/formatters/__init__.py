"""Output formatters for stream output."""

from logstream.formatters.base import BaseFormatter
from logstream.formatters.human import HumanFormatter
from logstream.formatters.json import JSONFormatter

__all__ = ["BaseFormatter", "HumanFormatter", "JSONFormatter"]
