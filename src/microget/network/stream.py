"""
Network stream interface for microget.

This module defines the NetworkStream interface that all network stream
implementations must follow for consistent behavior across the library.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NetworkStream(ABC):
    """
    Interface for timeout-guarded network streams.

    A stream is exclusively owned by the request that opened it. Every
    read and write is bounded by the stream's idle window: when no
    progress is made for that long the operation raises a timeout
    error instead of blocking further.
    """

    @abstractmethod
    def read(self, max_bytes: int) -> bytes:
        """
        Read up to max_bytes from the stream.

        Args:
            max_bytes: Maximum number of bytes to read.

        Returns:
            The data read, or b"" once the peer has closed the connection.

        Raises:
            StreamError: If the stream is closed.
            ReadTimeout: If no data arrives within the idle window.
            TransportError: If a network error occurs.
        """
        pass

    @abstractmethod
    def recv_into(self, buffer: Any, nbytes: int = 0) -> int:
        """
        Read into a caller-provided writable buffer.

        Args:
            buffer: A writable bytes-like object (bytearray, memoryview)
            nbytes: Maximum number of bytes to read, 0 for len(buffer)

        Returns:
            The number of bytes read, 0 once the peer has closed the connection.

        Raises:
            StreamError: If the stream is closed.
            ReadTimeout: If no data arrives within the idle window.
            TransportError: If a network error occurs.
        """
        pass

    @abstractmethod
    def write(self, data: bytes) -> None:
        """
        Write all of data to the stream.

        Args:
            data: The data to write to the stream.

        Raises:
            StreamError: If the stream is closed.
            WriteTimeout: If the peer stops accepting data for the idle window.
            TransportError: If a network error occurs.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Close the stream and release the socket.

        Closing an already closed stream is a no-op.
        """
        pass

    @abstractmethod
    def get_extra_info(self, name: str) -> Optional[Any]:
        """
        Get extra information about the stream.

        Args:
            name: The name of the information to retrieve. Common values include:
                 - "socket": The underlying socket object
                 - "peername": The remote endpoint address
                 - "sockname": The local endpoint address

        Returns:
            The requested information or None if not available.
        """
        pass

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """
        Check if the stream is closed.

        Returns:
            True if the stream is closed, False otherwise.
        """
        pass

    def __enter__(self) -> "NetworkStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
