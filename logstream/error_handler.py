"""
Standardized transport error handling for logstream clients

This module centralizes how push-connection failures are interpreted and
logged. Every failure is recoverable from the client's point of view; the
category only decides how loudly it is reported.
"""

import logging
from typing import Optional

import httpx
from httpx_sse import SSEError


class StreamProtocolError(Exception):
    """The server answered, but not with a usable event stream."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def classify_stream_error(exc: BaseException) -> str:
    """
    Map a transport exception to a failure category

    Args:
        exc: Exception raised while opening or reading a stream

    Returns:
        One of CONNECTION_ERROR, TIMEOUT, HTTP_ERROR, PROTOCOL_ERROR,
        STREAM_ERROR
    """
    if isinstance(exc, httpx.ConnectError):
        return "CONNECTION_ERROR"
    if isinstance(exc, httpx.TimeoutException):
        return "TIMEOUT"
    if isinstance(exc, httpx.HTTPStatusError):
        return "HTTP_ERROR"
    if isinstance(exc, StreamProtocolError):
        return "HTTP_ERROR" if exc.status_code is not None else "PROTOCOL_ERROR"
    if isinstance(exc, SSEError):
        return "PROTOCOL_ERROR"
    return "STREAM_ERROR"


def handle_stream_error(
    url: str,
    exc: BaseException,
    logger: logging.Logger
) -> str:
    """
    Standardized push-connection error handling

    Args:
        url: Stream URL the failure belongs to
        exc: Exception that ended the connection
        logger: Logger instance to use for logging

    Returns:
        The failure category
    """
    category = classify_stream_error(exc)

    if category == "CONNECTION_ERROR":
        error_msg = f"Couldn't connect to {url}. Make sure the server is running."
        logger.warning(error_msg)
    elif category == "TIMEOUT":
        error_msg = f"Stream timed out: {url}"
        logger.warning(error_msg)
    elif category == "HTTP_ERROR":
        error_msg = f"Stream request rejected: {exc}"
        logger.error(error_msg)
    elif category == "PROTOCOL_ERROR":
        error_msg = f"Invalid event stream from {url}: {exc}"
        logger.error(error_msg)
    else:
        error_msg = f"Stream error on {url}: {exc}"
        logger.error(error_msg, exc_info=exc)

    return category
