"""
Network utilities for microget.

This module provides utility functions for common network operations
including socket creation, address resolution and Host header formatting.
"""

import os
import socket
from typing import Optional, Tuple, Union


def create_socket(
    family: int = socket.AF_INET,
    type: int = socket.SOCK_STREAM,
    proto: int = 0
) -> socket.socket:
    """
    Create a non-blocking TCP socket.

    The socket is switched to non-blocking mode before anything else so
    that a connect to a stalled or filtered destination cannot block the
    caller. Nagle's algorithm is disabled since request writes are small
    and latency-sensitive.

    Args:
        family: Address family (default: AF_INET)
        type: Socket type (default: SOCK_STREAM)
        proto: Protocol (default: 0 for auto)

    Returns:
        Configured socket object

    Raises:
        OSError: If socket creation fails
    """
    sock = socket.socket(family, type, proto)
    try:
        sock.setblocking(False)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    except OSError:
        sock.close()
        raise

    return sock


def resolve_ipv4(host: str, port: int) -> Tuple[str, int]:
    """
    Resolve a host name to an IPv4 socket address.

    Args:
        host: Hostname or IPv4 address
        port: Port number

    Returns:
        The (address, port) tuple of the first IPv4 result

    Raises:
        socket.gaierror: If the name cannot be resolved
    """
    infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
    # getaddrinfo raises rather than returning an empty list
    _family, _type, _proto, _canonname, sockaddr = infos[0]
    return sockaddr[0], sockaddr[1]


def format_host_header(host: str, port: int) -> str:
    """
    Format host header for HTTP requests.

    The port is omitted only when it is 80. Some servers validate a
    signed Host header, so a superfluous ``:80`` must never be added.

    Args:
        host: Hostname
        port: Port number

    Returns:
        Formatted host header string
    """
    if port == 80:
        return host
    return f"{host}:{port}"


def get_socket_error(sock: socket.socket) -> int:
    """
    Get the pending error code for a socket.

    Args:
        sock: Socket object

    Returns:
        The errno stored in SO_ERROR, 0 if there is none
    """
    return sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)


def describe_errno(code: int) -> str:
    """Human-readable message for an errno value."""
    return os.strerror(code)


def validate_port(port: Union[int, str]) -> int:
    """
    Validate and convert port to integer.

    Args:
        port: Port number (int or string)

    Returns:
        Port as integer

    Raises:
        ValueError: If port is invalid
    """
    try:
        port_int = int(port)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid port: {port}")

    if not (1 <= port_int <= 65535):
        raise ValueError(f"Port must be between 1 and 65535, got {port_int}")

    return port_int


def find_free_port(host: str = "127.0.0.1") -> int:
    """
    Ask the OS for a currently unused TCP port.

    Args:
        host: Interface to probe

    Returns:
        A port number that was free at the time of the call
    """
    probe: Optional[socket.socket] = None
    try:
        probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        probe.bind((host, 0))
        return probe.getsockname()[1]
    finally:
        if probe is not None:
            probe.close()
