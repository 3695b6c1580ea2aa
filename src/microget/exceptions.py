"""
Custom exceptions for microget.

This module defines the exception hierarchy used throughout
the library. Timeouts and parse errors are distinct kinds so that
callers can retry the former while treating the latter as fatal.
"""

from typing import Optional


class MicrogetError(Exception):
    """Base exception for all microget errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class RequestError(MicrogetError):
    """Raised when a request cannot be constructed."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Request error: {message}", cause)


class InvalidScheme(RequestError):
    """Raised when the URL scheme is anything other than plain http."""


class MissingHost(RequestError):
    """Raised when the URL has no host component."""


class InvalidHeader(RequestError):
    """Raised when a request header would corrupt the request head."""


class ConnectionError(MicrogetError):
    """Raised when there's an error with network connections."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Connection error: {message}", cause)


class ConnectError(ConnectionError):
    """Raised when the TCP connection is refused or unreachable."""


class TransportError(ConnectionError):
    """Raised on a generic I/O failure of an established connection."""


class ProtocolError(MicrogetError):
    """Raised when there's an error with HTTP protocol handling."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Protocol error: {message}", cause)


class HeaderSizeExceeded(ProtocolError):
    """Raised when the response head grows past the configured limit."""


class TruncatedHeaders(ProtocolError):
    """Raised when the peer closes before the end of the response head."""


class MalformedStatusLine(ProtocolError):
    """Raised when the first response line is not an HTTP status line."""


class MalformedHeaderLine(ProtocolError):
    """Raised when a response header line has no colon."""


class UnsupportedTransferEncoding(ProtocolError):
    """Raised when the response body uses a framing we do not decode."""


class TimeoutError(MicrogetError):
    """Raised when an operation times out."""

    def __init__(self, message: str, timeout: Optional[float] = None) -> None:
        if timeout is not None:
            message = f"{message} (timeout: {timeout}s)"
        super().__init__(f"Timeout error: {message}")
        self.timeout = timeout


class OpenTimeout(TimeoutError):
    """Raised when the connection is not established within the open timeout."""


class ReadTimeout(TimeoutError):
    """Raised when no data arrives within the idle window."""


class WriteTimeout(TimeoutError):
    """Raised when the request cannot be sent within the idle window."""


class StreamError(MicrogetError):
    """Raised when there's an error with stream operations."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Stream error: {message}", cause)


class ServerRunnerError(MicrogetError):
    """Raised when a managed test server fails to come up."""
