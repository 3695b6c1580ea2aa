"""
Network backend components for microget.

This module provides the low-level networking abstractions:
the bounded readiness wait, network streams and the TCP connector.
"""

from .backend import NetworkBackend
from .stream import NetworkStream
from .readiness import IdleClock, wait_for_socket, wait_for_read, wait_for_write
from .tcp import TCPNetworkBackend, TCPNetworkStream
from .mock import MockNetworkBackend, MockNetworkStream, STALL
from .utils import (
    create_socket,
    resolve_ipv4,
    format_host_header,
    get_socket_error,
    validate_port,
    find_free_port,
)

__all__ = [
    "NetworkBackend",
    "NetworkStream",
    "IdleClock",
    "wait_for_socket",
    "wait_for_read",
    "wait_for_write",
    "TCPNetworkBackend",
    "TCPNetworkStream",
    "MockNetworkBackend",
    "MockNetworkStream",
    "STALL",
    "create_socket",
    "resolve_ipv4",
    "format_host_header",
    "get_socket_error",
    "validate_port",
    "find_free_port",
]
