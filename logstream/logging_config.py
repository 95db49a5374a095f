"""
Standardized logging configuration for logstream

Stream output goes to stdout, so log records always go to stderr.
"""

import logging
import sys
from typing import Optional

NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
]


def configure_logging(
    level: str = "INFO",
    format_string: Optional[str] = None,
    suppress_http: bool = True,
    verbose: bool = False
) -> None:
    """
    Configure standardized logging

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string, uses default if None
        suppress_http: Whether to suppress per-request httpx logging
        verbose: If True, shows module names and line numbers
    """
    if isinstance(level, str):
        log_level = getattr(logging, level.upper(), logging.INFO)
    else:
        log_level = level

    if format_string is None:
        if verbose:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
        else:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=format_string,
        stream=sys.stderr,
        force=True  # Override any existing configuration
    )

    if suppress_http:
        suppress_http_logging()


def suppress_http_logging() -> None:
    """Suppress httpx/httpcore request logging that clutters output"""
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def configure_cli_logging(verbose: bool = False, level: str = "INFO") -> None:
    """
    Configure logging for the command line

    Args:
        verbose: If True, show DEBUG level regardless of level
        level: Configured logging level
    """
    if verbose:
        configure_logging(level="DEBUG", verbose=True, suppress_http=True)
    else:
        configure_logging(
            level=level,
            format_string="%(asctime)s - %(levelname)s - %(message)s",
            suppress_http=True
        )
