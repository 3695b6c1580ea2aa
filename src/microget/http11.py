"""
HTTP/1.1 connection implementation for microget.

This module implements the HTTP11Connection class that sends a GET
request over a NetworkStream and scans the response head byte by byte,
so that the stream is left positioned exactly at byte 0 of the body.
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, Optional

from .config import DEFAULT_HEADER_LIMIT
from .exceptions import (
    HeaderSizeExceeded,
    MalformedHeaderLine,
    MalformedStatusLine,
    StreamError,
    TruncatedHeaders,
)
from .http_primitives import Request, ResponseHead
from .network.stream import NetworkStream
from .streams import BodyCallback, BodyStreamer

logger = logging.getLogger(__name__)

HEADER_SEPARATOR = b"\r\n\r\n"
STATUS_PATTERN = re.compile(r"HTTP/(\d+(?:\.\d+)*) (\d{3})(?: (.*))?")  # "HTTP/1.1 200 OK"


class ConnectionState(Enum):
    """States of a single-request HTTP/1.1 connection."""
    NEW = "new"                      # Connection open, request not sent yet
    REQUEST_SENT = "request_sent"    # Waiting for the response head
    HEAD_RECEIVED = "head_received"  # Positioned at byte 0 of the body
    CLOSED = "closed"                # Connection closed, cannot be reused


class HTTP11Connection:
    """
    HTTP/1.1 connection for one GET request.

    The connection is never reused: the request asks the server to
    close it, and the body ends when the server does. Any failure while
    sending the request or reading the head closes the connection
    before the error propagates; close() can be called any number of
    times.
    """

    def __init__(
        self,
        stream: NetworkStream,
        header_limit: int = DEFAULT_HEADER_LIMIT,
    ):
        """
        Initialize HTTP/1.1 connection.

        Args:
            stream: The NetworkStream to use for communication
            header_limit: Maximum size of the response head in bytes
        """
        self._stream = stream
        self._header_limit = header_limit
        self._state = ConnectionState.NEW
        self._head: Optional[ResponseHead] = None

        # Metrics
        self._bytes_sent = 0
        self._bytes_received = 0

    def send_request(self, request: Request) -> None:
        """
        Write the request head to the stream.

        Args:
            request: The request to send

        Raises:
            StreamError: If a request was already sent on this connection
            WriteTimeout: If the server stops accepting data
            TransportError: If the write fails
        """
        self._expect_state(ConnectionState.NEW)
        data = request.head_bytes
        try:
            self._stream.write(data)
        except BaseException:
            self.close()
            raise

        self._bytes_sent += len(data)
        self._state = ConnectionState.REQUEST_SENT
        logger.debug(f"Sent GET {request.target} to {request.host_header} ({len(data)} bytes)")

    def receive_head(self) -> ResponseHead:
        """
        Read and parse the response head.

        Returns:
            The parsed response head

        Raises:
            HeaderSizeExceeded: If the head is larger than the header limit
            TruncatedHeaders: If the server closes before the end of the head
            MalformedStatusLine: If the first line is not a status line
            MalformedHeaderLine: If a header line has no colon
            ReadTimeout: If the server stalls for longer than the idle window
        """
        self._expect_state(ConnectionState.REQUEST_SENT)
        try:
            raw = self._read_ahead_headers()
            head = parse_response_head(raw)
        except BaseException:
            self.close()
            raise

        self._head = head
        self._state = ConnectionState.HEAD_RECEIVED
        logger.debug(
            f"Received HTTP/{head.http_version} {head.status_code} "
            f"with {len(head.headers)} headers"
        )
        return head

    def send_request_and_read_headers(self, request: Request) -> ResponseHead:
        """Send the request and return the parsed response head."""
        self.send_request(request)
        return self.receive_head()

    def stream_body(self, callback: BodyCallback, chunk_size: int) -> int:
        """
        Stream the body to a callback, then close the connection.

        Args:
            callback: Called as ``callback(status_code, headers, chunk)``.
                      A falsy return value stops the stream.
            chunk_size: Maximum number of bytes per read

        Returns:
            Total number of body bytes read
        """
        self._expect_state(ConnectionState.HEAD_RECEIVED)
        streamer = BodyStreamer(self, self._head, chunk_size)
        return streamer.run(callback)

    def _read_ahead_headers(self) -> bytes:
        # Read one byte at a time so nothing past the separator is consumed
        buffer = bytearray()
        while True:
            byte = self._stream.read(1)
            if not byte:
                raise TruncatedHeaders(r"No header terminating \r\n\r\n found in the response")

            buffer += byte
            if buffer.endswith(HEADER_SEPARATOR):
                self._bytes_received += len(buffer)
                return bytes(buffer[:-len(HEADER_SEPARATOR)])

            if len(buffer) > self._header_limit:
                raise HeaderSizeExceeded(
                    f"Response header size limit reached ({self._header_limit} bytes)"
                )

    def recv_into(self, buffer: Any, nbytes: int = 0) -> int:
        """Read body bytes into buffer, see NetworkStream.recv_into."""
        received = self._stream.recv_into(buffer, nbytes)
        self._bytes_received += received
        return received

    def read(self, max_bytes: int) -> bytes:
        """Read up to max_bytes of body, b"" once the server has closed."""
        self._expect_state(ConnectionState.HEAD_RECEIVED)
        data = self._stream.read(max_bytes)
        self._bytes_received += len(data)
        return data

    def _expect_state(self, expected: ConnectionState) -> None:
        if self._state == ConnectionState.CLOSED:
            raise StreamError("Connection is closed")
        if self._state != expected:
            raise StreamError(
                f"Connection is {self._state.value}, expected {expected.value}"
            )

    def close(self) -> None:
        """
        Close the connection and cleanup resources.
        """
        if self._state == ConnectionState.CLOSED:
            return
        self._state = ConnectionState.CLOSED
        self._stream.close()
        logger.debug(
            f"Connection closed ({self._bytes_sent} bytes sent, "
            f"{self._bytes_received} bytes received)"
        )

    def __enter__(self) -> "HTTP11Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def head(self) -> Optional[ResponseHead]:
        """The response head, once received."""
        return self._head

    @property
    def is_closed(self) -> bool:
        """Check if connection is closed."""
        return self._state == ConnectionState.CLOSED

    @property
    def metrics(self) -> Dict[str, Any]:
        """
        Get connection metrics.

        Returns:
            Dictionary with connection metrics
        """
        return {
            "bytes_sent": self._bytes_sent,
            "bytes_received": self._bytes_received,
            "state": self._state.value,
        }


def parse_response_head(raw: bytes) -> ResponseHead:
    """
    Parse a raw response head into a ResponseHead.

    Header names are kept exactly as sent, values are stripped of
    surrounding whitespace, and a repeated name keeps its last value.

    Args:
        raw: The head without the terminating blank line

    Returns:
        The parsed head

    Raises:
        MalformedStatusLine: If the first line is not an HTTP status line
        MalformedHeaderLine: If a header line has no colon
    """
    # Header bytes are ISO-8859-1, which maps every byte to one character
    lines = raw.decode("iso-8859-1").split("\r\n")
    status_line = lines[0]

    match = STATUS_PATTERN.fullmatch(status_line)
    if match is None:
        raise MalformedStatusLine(f"Invalid response status line {status_line!r}")

    http_version, status_code, reason = match.groups()

    headers: Dict[str, str] = {}
    for line in lines[1:]:
        name, separator, value = line.partition(":")
        if not separator:
            raise MalformedHeaderLine(f"Invalid response header line {line!r}")
        headers[name] = value.strip()

    return ResponseHead(
        status_code=int(status_code),
        reason=reason or "",
        http_version=http_version,
        headers=headers,
        raw=raw,
    )
