"""
Mock network implementations for testing.

This module provides mock implementations of NetworkStream and NetworkBackend
that can be used for unit testing without requiring actual network connections.
"""

from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple, Union

from ..exceptions import ReadTimeout, StreamError
from .backend import NetworkBackend
from .stream import NetworkStream


class _Stall:
    """Marker for a point where the peer stops sending."""

    def __repr__(self) -> str:
        return "STALL"


STALL = _Stall()

Segment = Union[bytes, _Stall]


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    Incoming data is scripted as a sequence of segments. A read never
    crosses a segment boundary, the way a real read returns what one
    packet delivered, and a STALL segment makes the next read fail
    with ReadTimeout as if the idle window had run out.
    """

    def __init__(self, data: bytes = b"", read_timeout: float = 1.0):
        """
        Initialize the mock stream.

        Args:
            data: Initial data to be available for reading.
            read_timeout: Timeout reported by simulated stalls.
        """
        self._segments: Deque[Segment] = deque()
        self._closed = False
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []
        self.read_timeout = read_timeout
        self.bytes_consumed = 0
        self.close_calls = 0
        if data:
            self._segments.append(data)

    def read(self, max_bytes: int) -> bytes:
        """
        Read up to max_bytes from the current segment.

        Raises:
            StreamError: If the stream is closed.
            ReadTimeout: If the current segment is a stall.
        """
        if self._closed:
            raise StreamError("Stream is closed")

        if not self._segments:
            return b""

        segment = self._segments[0]
        if isinstance(segment, _Stall):
            self._segments.popleft()
            raise ReadTimeout("No data received from the server", timeout=self.read_timeout)

        result = segment[:max_bytes]
        if len(result) == len(segment):
            self._segments.popleft()
        else:
            self._segments[0] = segment[max_bytes:]

        self.bytes_consumed += len(result)
        return result

    def recv_into(self, buffer: Any, nbytes: int = 0) -> int:
        data = self.read(nbytes or len(buffer))
        buffer[:len(data)] = data
        return len(data)

    def write(self, data: bytes) -> None:
        """
        Write data to the mock stream.

        Raises:
            StreamError: If the stream is closed.
        """
        if self._closed:
            raise StreamError("Stream is closed")

        self._write_buffer.append(bytes(data))

    def close(self) -> None:
        """Close the mock stream."""
        self.close_calls += 1
        self._closed = True

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._extra_info.get(name)

    @property
    def is_closed(self) -> bool:
        """Check if the mock stream is closed."""
        return self._closed

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    @property
    def remaining_data(self) -> bytes:
        """Get the scripted data that has not been read yet."""
        return b"".join(s for s in self._segments if isinstance(s, bytes))

    def set_extra_info(self, name: str, value: Any) -> None:
        self._extra_info[name] = value

    def add_data(self, data: bytes) -> None:
        """
        Add a segment of data to be available for reading.

        Args:
            data: The data to add.
        """
        self._segments.append(data)

    def add_stall(self) -> None:
        """Make the read after the current segments time out."""
        self._segments.append(STALL)


class MockNetworkBackend(NetworkBackend):
    """
    Mock network backend for testing.

    Hands out the MockNetworkStream registered for a host and port,
    or raises the error registered for it.
    """

    def __init__(self):
        """Initialize the mock backend."""
        self._connections: Dict[Tuple[str, int], MockNetworkStream] = {}
        self._failures: Dict[Tuple[str, int], Exception] = {}
        self.connect_calls: List[Tuple[str, int, float, float]] = []

    def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float,
        read_timeout: float,
    ) -> MockNetworkStream:
        """
        Create a mock TCP connection.

        Args:
            host: The hostname to connect to.
            port: The port number to connect to.
            timeout: Recorded, otherwise ignored.
            read_timeout: Recorded, otherwise ignored.

        Returns:
            A MockNetworkStream representing the connection.
        """
        self.connect_calls.append((host, port, timeout, read_timeout))
        key = (host, port)

        if key in self._failures:
            raise self._failures[key]

        if key not in self._connections:
            stream = MockNetworkStream(read_timeout=read_timeout)
            stream.set_extra_info("peername", (host, port))
            self._connections[key] = stream

        return self._connections[key]

    def add_connection(self, host: str, port: int, stream: MockNetworkStream) -> None:
        """Register the stream returned for host and port."""
        self._connections[(host, port)] = stream

    def fail_connection(self, host: str, port: int, error: Exception) -> None:
        """Make connecting to host and port raise error."""
        self._failures[(host, port)] = error

    def get_connection(self, host: str, port: int) -> Optional[MockNetworkStream]:
        return self._connections.get((host, port))

    def reset(self) -> None:
        """Reset all mock connections."""
        self._connections.clear()
        self._failures.clear()
        self.connect_calls.clear()
