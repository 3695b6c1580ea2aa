"""
Plain TCP backend for microget.

Connections are opened and used in non-blocking mode, with every
wait bounded by the readiness primitive. This gives a hard timeout
on connect and a sliding idle timeout on reads and writes, which the
platform's blocking calls would not provide.
"""

import errno
import logging
import socket
import time
from typing import Any, Callable, Optional, Tuple

from ..exceptions import (
    ConnectError,
    OpenTimeout,
    ReadTimeout,
    StreamError,
    TransportError,
    WriteTimeout,
)
from .backend import NetworkBackend
from .readiness import IdleClock, wait_for_socket, wait_for_write
from .stream import NetworkStream
from .utils import create_socket, describe_errno, get_socket_error, resolve_ipv4

logger = logging.getLogger(__name__)

_CONNECT_PENDING = frozenset(
    {errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN, errno.EALREADY}
)
_CONNECT_DONE = frozenset({0, errno.EISCONN})


class TCPNetworkStream(NetworkStream):
    """Network stream over a non-blocking TCP socket."""

    def __init__(
        self,
        sock: socket.socket,
        read_timeout: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sock = sock
        self.read_timeout = read_timeout
        self.closed = False
        self._idle = IdleClock(clock)

    def read(self, max_bytes: int) -> bytes:
        self._check_open()
        return self._retry(self.sock.recv, max_bytes)

    def recv_into(self, buffer: Any, nbytes: int = 0) -> int:
        self._check_open()
        return self._retry(self.sock.recv_into, buffer, nbytes)

    def write(self, data: bytes) -> None:
        self._check_open()
        view = memoryview(data)
        total = 0
        while total < len(view):
            total += self._retry(self.sock.send, view[total:], writing=True)

    def _retry(self, operation: Callable[..., Any], *args: Any, writing: bool = False) -> Any:
        # Retry a non-blocking call until it makes progress or the idle window closes
        while True:
            try:
                result = operation(*args)
            except BlockingIOError:
                self._wait(writing)
                continue
            except OSError as e:
                action = "send" if writing else "recv"
                raise TransportError(f"{action} failed: {e}", cause=e) from e
            self._idle.reset()
            return result

    def _wait(self, writing: bool) -> None:
        remaining = self._idle.remaining(self.read_timeout)
        ready = remaining > 0 and wait_for_socket(
            self.sock, read=not writing, write=writing, timeout=remaining
        )
        if ready:
            return
        if writing:
            raise WriteTimeout("Server stopped accepting data", timeout=self.read_timeout)
        raise ReadTimeout("No data received from the server", timeout=self.read_timeout)

    def _check_open(self) -> None:
        if self.closed:
            raise StreamError("Stream is closed")

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.sock.close()

    def get_extra_info(self, name: str) -> Optional[Any]:
        if name == "socket":
            return self.sock
        elif name == "peername":
            try:
                return self.sock.getpeername()
            except OSError:
                return None
        elif name == "sockname":
            try:
                return self.sock.getsockname()
            except OSError:
                return None
        elif name == "last_io":
            return self._idle.last_io
        return None

    @property
    def is_closed(self) -> bool:
        return self.closed


class TCPNetworkBackend(NetworkBackend):
    """Network backend opening IPv4 TCP connections with a bounded connect."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock

    def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float,
        read_timeout: float,
    ) -> TCPNetworkStream:
        started = self._clock()

        try:
            address = resolve_ipv4(host, port)
        except OSError as e:
            raise ConnectError(f"Cannot resolve {host}: {e}", cause=e) from e

        try:
            sock = create_socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            raise ConnectError(f"Cannot create socket: {e}", cause=e) from e

        try:
            self._establish(sock, address, timeout)
        except BaseException:
            sock.close()
            raise

        logger.debug(
            f"Connected to {host}:{port} ({address[0]}) "
            f"in {self._clock() - started:.3f}s"
        )
        return TCPNetworkStream(sock, read_timeout, self._clock)

    def _establish(
        self,
        sock: socket.socket,
        address: Tuple[str, int],
        timeout: float,
    ) -> None:
        """Start a non-blocking connect and wait for it to complete."""
        target = f"{address[0]}:{address[1]}"

        code = self._connect_ex(sock, address)
        if code in _CONNECT_DONE:
            return
        if code not in _CONNECT_PENDING:
            raise self._connect_error(target, code)

        if not wait_for_write(sock, timeout):
            raise OpenTimeout(f"Could not connect to {target}", timeout=timeout)

        # Writable means finished, not necessarily connected
        code = get_socket_error(sock)
        if code == 0:
            code = self._connect_ex(sock, address)
        if code not in _CONNECT_DONE:
            raise self._connect_error(target, code)

    def _connect_ex(self, sock: socket.socket, address: Tuple[str, int]) -> int:
        try:
            return sock.connect_ex(address)
        except OSError as e:
            raise ConnectError(f"Cannot connect to {address[0]}:{address[1]}: {e}", cause=e) from e

    def _connect_error(self, target: str, code: int) -> ConnectError:
        cause = OSError(code, describe_errno(code))
        return ConnectError(f"Cannot connect to {target}: {cause.strerror}", cause=cause)
