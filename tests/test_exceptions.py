"""
Unit tests for custom exceptions.

Tests the exception hierarchy to ensure proper error handling
and cause tracking.
"""

import pytest

from microget.exceptions import (
    MicrogetError,
    RequestError,
    InvalidScheme,
    MissingHost,
    InvalidHeader,
    ConnectionError,
    ConnectError,
    TransportError,
    ProtocolError,
    HeaderSizeExceeded,
    TruncatedHeaders,
    MalformedStatusLine,
    MalformedHeaderLine,
    UnsupportedTransferEncoding,
    TimeoutError,
    OpenTimeout,
    ReadTimeout,
    WriteTimeout,
    StreamError,
    ServerRunnerError,
)


class TestMicrogetError:
    """Test base MicrogetError class."""

    def test_basic_creation(self) -> None:
        """Test creating basic MicrogetError."""
        error = MicrogetError("Test error message")
        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.cause is None

    def test_with_cause(self) -> None:
        """Test creating MicrogetError with cause."""
        original_error = ValueError("Original error")
        error = MicrogetError("Test error message", cause=original_error)
        assert error.cause == original_error


class TestCategoryMessages:
    """Test the message prefix each category adds."""

    def test_request_error(self) -> None:
        error = InvalidScheme("Only plain HTTP is supported")
        assert error.message == "Request error: Only plain HTTP is supported"

    def test_connection_error(self) -> None:
        original_error = OSError("Connection refused")
        error = ConnectError("Cannot connect", cause=original_error)
        assert error.message == "Connection error: Cannot connect"
        assert error.cause is original_error

    def test_protocol_error(self) -> None:
        error = MalformedStatusLine("Invalid response status line 'nope'")
        assert str(error) == "Protocol error: Invalid response status line 'nope'"

    def test_timeout_error_with_value(self) -> None:
        """Test creating TimeoutError with timeout value."""
        error = ReadTimeout("No data received", timeout=0.5)
        assert str(error) == "Timeout error: No data received (timeout: 0.5s)"
        assert error.timeout == 0.5

    def test_timeout_error_without_value(self) -> None:
        error = OpenTimeout("Could not connect")
        assert str(error) == "Timeout error: Could not connect"
        assert error.timeout is None

    def test_stream_error(self) -> None:
        error = StreamError("Stream is closed")
        assert error.message == "Stream error: Stream is closed"


class TestExceptionHierarchy:
    """Test exception hierarchy and inheritance."""

    @pytest.mark.parametrize("error_class", [
        RequestError, ConnectionError, ProtocolError,
        TimeoutError, StreamError, ServerRunnerError,
    ])
    def test_categories_inherit_from_base(self, error_class) -> None:
        assert issubclass(error_class, MicrogetError)

    @pytest.mark.parametrize("error_class,category", [
        (InvalidScheme, RequestError),
        (MissingHost, RequestError),
        (InvalidHeader, RequestError),
        (ConnectError, ConnectionError),
        (TransportError, ConnectionError),
        (HeaderSizeExceeded, ProtocolError),
        (TruncatedHeaders, ProtocolError),
        (MalformedStatusLine, ProtocolError),
        (MalformedHeaderLine, ProtocolError),
        (UnsupportedTransferEncoding, ProtocolError),
        (OpenTimeout, TimeoutError),
        (ReadTimeout, TimeoutError),
        (WriteTimeout, TimeoutError),
    ])
    def test_kinds_belong_to_category(self, error_class, category) -> None:
        assert issubclass(error_class, category)

    def test_timeouts_are_not_protocol_errors(self) -> None:
        """Callers retry timeouts and give up on malformed responses."""
        assert not issubclass(ReadTimeout, ProtocolError)
        assert not issubclass(MalformedStatusLine, TimeoutError)

    def test_exception_raising(self) -> None:
        """Test that exceptions can be raised and caught by category."""
        with pytest.raises(TimeoutError) as exc_info:
            raise ReadTimeout("Operation timed out", timeout=60.0)

        assert "Timeout error: Operation timed out (timeout: 60.0s)" in str(exc_info.value)

        with pytest.raises(ProtocolError):
            raise TruncatedHeaders("No header terminating found")
