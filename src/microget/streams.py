"""
Streaming framework for microget.

This module streams a response body to a consumer callback with
bounded memory. Every body read lands in one ChunkBuffer that is
reused for the whole request, so no memory is allocated per chunk.
The consumer drives the stream: returning a falsy value from the
callback stops reading.
"""

import logging
from typing import (
    Any,
    Callable,
    List,
    Mapping,
    Optional,
    TYPE_CHECKING,
)

from .exceptions import StreamError
from .http_primitives import ResponseHead

if TYPE_CHECKING:
    from .http11 import HTTP11Connection  # Forward reference

logger = logging.getLogger(__name__)


class ChunkBuffer:
    """
    A fixed-capacity byte buffer reused across every body read.

    The contents are only valid from the return of one read until the
    start of the next one. A consumer that needs the bytes for longer
    must call copy() (or bytes(chunk)); holding on to ``view`` across
    callback invocations yields whatever the next read wrote into it.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._storage = bytearray(capacity)
        self._view = memoryview(self._storage)
        self._length = 0

    def fill_from(self, connection: Any) -> int:
        """
        Overwrite the buffer with the next read from a connection.

        Args:
            connection: Anything with a ``recv_into(buffer, nbytes)`` method

        Returns:
            The number of bytes read, 0 at end of stream
        """
        self._length = 0
        self._length = connection.recv_into(self._view, len(self._storage))
        return self._length

    def clear(self) -> None:
        self._length = 0

    @property
    def capacity(self) -> int:
        return len(self._storage)

    @property
    def view(self) -> memoryview:
        """Zero-copy view of the current contents."""
        return self._view[:self._length]

    def copy(self) -> bytes:
        """Copy the current contents out of the shared buffer."""
        return bytes(self._view[:self._length])

    def __bytes__(self) -> bytes:
        return self.copy()

    def __len__(self) -> int:
        return self._length

    def __repr__(self) -> str:
        return f"<ChunkBuffer length={self._length} capacity={self.capacity}>"


BodyCallback = Callable[[int, Mapping[str, str], ChunkBuffer], Any]


class BodyStreamer:
    """
    Streams a response body from a connection to a callback.

    The callback is invoked once with an empty chunk before any body
    byte is read, so a consumer can reject a response on its status and
    headers alone, and then once per successful read. The connection is
    closed on every way out of run().
    """

    def __init__(
        self,
        connection: "HTTP11Connection",
        head: ResponseHead,
        chunk_size: int,
    ) -> None:
        """
        Initialize BodyStreamer.

        Args:
            connection: Connection positioned at byte 0 of the body
            head: The parsed response head
            chunk_size: Maximum number of bytes per read
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self._connection = connection
        self._head = head
        self._buffer = ChunkBuffer(chunk_size)
        self._bytes_received = 0
        self._aborted = False
        self._started = False

    def run(self, callback: BodyCallback) -> int:
        """
        Read the body until EOF or until the callback asks to stop.

        Args:
            callback: Called as ``callback(status_code, headers, chunk)``.
                      A falsy return value stops the stream.

        Returns:
            Total number of body bytes read

        Raises:
            StreamError: If the streamer was already run
            ReadTimeout: If the server stalls for longer than the idle window
            TransportError: If the connection fails mid-body
        """
        if self._started:
            raise StreamError("Body can only be streamed once")
        self._started = True

        try:
            return self._pump(callback)
        finally:
            self._connection.close()

    def _pump(self, callback: BodyCallback) -> int:
        status_code = self._head.status_code
        headers = self._head.headers
        buffer = self._buffer

        if not callback(status_code, headers, buffer):
            self._aborted = True
            logger.debug(f"Response {status_code} rejected before the body")
            return 0

        while True:
            received = buffer.fill_from(self._connection)
            if received == 0:
                break

            self._bytes_received += received
            if not callback(status_code, headers, buffer):
                self._aborted = True
                break

        logger.debug(
            f"Body {'aborted' if self._aborted else 'complete'} "
            f"after {self._bytes_received} bytes"
        )
        return self._bytes_received

    @property
    def bytes_received(self) -> int:
        """Get the number of body bytes read so far."""
        return self._bytes_received

    @property
    def aborted(self) -> bool:
        """Whether the callback stopped the stream early."""
        return self._aborted


class BodyCollector:
    """
    Callback that keeps the whole body in memory.

    Every chunk is copied out of the shared buffer, so this is only
    suitable for bodies that fit in memory.
    """

    def __init__(self, max_bytes: Optional[int] = None) -> None:
        """
        Args:
            max_bytes: Stop the stream once this many bytes are collected
        """
        self.status_code: Optional[int] = None
        self.headers: Mapping[str, str] = {}
        self.chunks: List[bytes] = []
        self._max_bytes = max_bytes
        self._size = 0

    def __call__(
        self,
        status_code: int,
        headers: Mapping[str, str],
        chunk: ChunkBuffer,
    ) -> bool:
        self.status_code = status_code
        self.headers = headers
        if len(chunk):
            self.chunks.append(chunk.copy())
            self._size += len(chunk)
        return self._max_bytes is None or self._size < self._max_bytes

    @property
    def body(self) -> bytes:
        """All collected chunks concatenated."""
        return b"".join(self.chunks)
