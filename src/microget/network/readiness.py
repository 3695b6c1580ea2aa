"""
Bounded readiness waits for non-blocking sockets.

Non-blocking I/O is used here purely to put a hard wall-clock bound
on operations the blocking socket API would not bound on its own
(connect, and reads that stall). Every wait goes through
wait_for_socket, and the idle window is tracked by IdleClock.
"""

import selectors
import socket
import time
from typing import Callable, Optional


def wait_for_socket(
    sock: socket.socket,
    read: bool = False,
    write: bool = False,
    timeout: Optional[float] = None,
) -> bool:
    """
    Block until a socket is ready or the timeout elapses.

    Args:
        sock: The socket to wait on
        read: Wait for the socket to become readable
        write: Wait for the socket to become writable
        timeout: Seconds to wait; None waits forever, 0 just polls

    Returns:
        True if the socket became ready, False if the timeout elapsed
    """
    if not read and not write:
        raise ValueError("must wait for read and/or write")

    events = 0
    if read:
        events |= selectors.EVENT_READ
    if write:
        events |= selectors.EVENT_WRITE

    if timeout is not None and timeout < 0:
        timeout = 0

    with selectors.DefaultSelector() as selector:
        selector.register(sock, events)
        return bool(selector.select(timeout))


def wait_for_read(sock: socket.socket, timeout: Optional[float] = None) -> bool:
    """Wait until the socket has data (or EOF) to read."""
    return wait_for_socket(sock, read=True, timeout=timeout)


def wait_for_write(sock: socket.socket, timeout: Optional[float] = None) -> bool:
    """Wait until the socket can accept writes (or a connect has finished)."""
    return wait_for_socket(sock, write=True, timeout=timeout)


class IdleClock:
    """
    Time elapsed since the last successful I/O on a connection.

    Only consecutive unready retries accumulate toward a threshold:
    every successful read or write calls reset(), so a download can
    run for as long as the peer keeps making progress.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last_io = clock()

    def reset(self) -> None:
        """Record successful I/O now."""
        self._last_io = self._clock()

    @property
    def last_io(self) -> float:
        return self._last_io

    def elapsed(self) -> float:
        """Seconds since the last successful I/O."""
        return self._clock() - self._last_io

    def remaining(self, threshold: float) -> float:
        """Seconds left before the idle threshold is exceeded, never negative."""
        return max(0.0, threshold - self.elapsed())

    def expired(self, threshold: float) -> bool:
        return self.elapsed() >= threshold
