"""
Network backend interface for microget.

This module defines the NetworkBackend interface that opens
connections for the client.
"""

from abc import ABC, abstractmethod

from .stream import NetworkStream


class NetworkBackend(ABC):
    """
    Interface for network backend implementations.

    A backend opens plain TCP connections with a bounded connection
    timeout and hands back a NetworkStream whose reads and writes are
    bounded by the given idle timeout.
    """

    @abstractmethod
    def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float,
        read_timeout: float,
    ) -> NetworkStream:
        """
        Connect to a TCP endpoint.

        Args:
            host: The hostname or IPv4 address to connect to.
            port: The port number to connect to.
            timeout: Seconds to wait for the connection to be established.
            read_timeout: Idle window for reads and writes on the new stream.

        Returns:
            A NetworkStream representing the TCP connection.

        Raises:
            ConnectError: If the connection is refused or unreachable.
            OpenTimeout: If the connection is not established in time.
        """
        pass
