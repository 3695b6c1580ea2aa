"""
Client configuration for microget.

All tunables live on an immutable ClientConfig that is handed to the
client explicitly, so every call (and every test) can use its own
timeouts without touching shared state.
"""

from dataclasses import dataclass, replace
from typing import Any


DEFAULT_OPEN_TIMEOUT = 5.0
# After which time to assume that the connection to the server has died
DEFAULT_READ_TIMEOUT = 60.0 * 5
DEFAULT_HEADER_LIMIT = 1024 * 64
DEFAULT_CHUNK_SIZE = 1024 * 1024 * 5


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable client configuration.

    Attributes:
        open_timeout: Seconds to wait for the TCP connection to be established
        read_timeout: Seconds of inactivity tolerated while reading or writing.
                      The window slides: every successful read or write resets it.
        header_limit: Maximum size of the response head in bytes
        chunk_size: Default number of bytes requested per body read
        reject_chunked: Fail on responses using chunked transfer encoding
                        instead of handing the raw chunk framing to the callback
    """

    open_timeout: float = DEFAULT_OPEN_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    header_limit: int = DEFAULT_HEADER_LIMIT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    reject_chunked: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.open_timeout <= 0:
            raise ValueError("open_timeout must be positive")
        if self.read_timeout <= 0:
            raise ValueError("read_timeout must be positive")
        if self.header_limit <= 0:
            raise ValueError("header_limit must be positive")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    def with_overrides(self, **changes: Any) -> "ClientConfig":
        """Create a new config with some values replaced."""
        return replace(self, **changes)
