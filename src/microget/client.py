"""
Streaming GET client.

This module ties the pieces together for one request: connect,
send the request and scan the head, then stream the body to a
callback. Every call opens its own connection and always closes it.
"""

import logging
import time
from typing import Optional, Tuple, Union

from .config import ClientConfig
from .exceptions import UnsupportedTransferEncoding
from .http11 import HTTP11Connection
from .http_primitives import HeaderInput, Request, ResponseHead
from .network import NetworkBackend, TCPNetworkBackend
from .streams import BodyCallback

logger = logging.getLogger(__name__)


class MicrogetClient:
    """
    Unbuffered HTTP/1.1 client for streaming large GET responses.

    A client only holds configuration and a network backend; it keeps
    no connections between calls and can be shared freely.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        backend: Optional[NetworkBackend] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Timeouts and limits, defaults to ClientConfig()
            backend: Network backend to connect with, defaults to plain TCP
        """
        self._config = config or ClientConfig()
        self._backend = backend or TCPNetworkBackend()

    @property
    def config(self) -> ClientConfig:
        return self._config

    def get_status_headers_and_body_stream(
        self,
        url: Union[str, Request],
        request_headers: Optional[HeaderInput] = None,
    ) -> Tuple[ResponseHead, HTTP11Connection]:
        """
        Execute a GET request and read the response head.

        Returns the parsed head together with the connection, positioned
        at byte 0 of the body, so that the caller can read the body. The
        caller is responsible for closing the connection when done.

        Args:
            url: The full URI of the request, or a prepared Request
            request_headers: Extra request headers to send with the request

        Returns:
            The response head and the open connection
        """
        request = self._build_request(url, request_headers)
        config = self._config

        stream = self._backend.connect_tcp(
            request.host,
            request.port,
            timeout=config.open_timeout,
            read_timeout=config.read_timeout,
        )
        connection = HTTP11Connection(stream, header_limit=config.header_limit)

        try:
            head = connection.send_request_and_read_headers(request)
            self._check_framing(head)
        except BaseException:
            connection.close()
            raise

        return head, connection

    def perform_get(
        self,
        url: Union[str, Request],
        callback: BodyCallback,
        request_headers: Optional[HeaderInput] = None,
        chunk_size: Optional[int] = None,
    ) -> int:
        """
        Execute a GET request and stream the body to a callback.

        The callback is called as ``callback(status_code, headers, chunk)``,
        first once with an empty chunk so that the response can be rejected
        before the body arrives, and then once per body read. Reading stops
        as soon as the callback returns a falsy value. ``chunk`` is a
        ChunkBuffer that is overwritten by the next read: copy it to keep it.

        Args:
            url: The full URI of the request, or a prepared Request
            callback: Consumer of the status, headers and body chunks
            request_headers: Extra request headers to send with the request
            chunk_size: Maximum bytes per body read, defaults to config.chunk_size

        Returns:
            The total number of body bytes read from the socket
        """
        start_time = time.time()
        connection: Optional[HTTP11Connection] = None

        try:
            head, connection = self.get_status_headers_and_body_stream(url, request_headers)
            received = connection.stream_body(callback, self._resolve_chunk_size(chunk_size))
        except Exception as e:
            duration = time.time() - start_time
            logger.error(f"GET {url} failed: {e} ({duration:.3f}s)")
            raise
        finally:
            if connection is not None:
                connection.close()

        duration = time.time() - start_time
        logger.debug(
            f"GET {url} -> {head.status_code}, {received} body bytes ({duration:.3f}s)"
        )
        return received

    def _build_request(
        self,
        url: Union[str, Request],
        request_headers: Optional[HeaderInput],
    ) -> Request:
        if isinstance(url, Request):
            if request_headers is not None:
                raise ValueError("request_headers cannot be combined with a prepared Request")
            return url
        return Request.create(url, request_headers)

    def _resolve_chunk_size(self, chunk_size: Optional[int]) -> int:
        # An explicit 0 is passed on so that BodyStreamer rejects it
        if chunk_size is None:
            return self._config.chunk_size
        return chunk_size

    def _check_framing(self, head: ResponseHead) -> None:
        if self._config.reject_chunked and head.is_chunked:
            raise UnsupportedTransferEncoding(
                "Chunked transfer encoding is not supported"
            )


def perform_get(
    url: Union[str, Request],
    callback: BodyCallback,
    request_headers: Optional[HeaderInput] = None,
    chunk_size: Optional[int] = None,
    config: Optional[ClientConfig] = None,
) -> int:
    """Stream a GET response to callback, see MicrogetClient.perform_get."""
    client = MicrogetClient(config)
    return client.perform_get(
        url,
        callback,
        request_headers=request_headers,
        chunk_size=chunk_size,
    )


def get_status_headers_and_body_stream(
    url: Union[str, Request],
    request_headers: Optional[HeaderInput] = None,
    config: Optional[ClientConfig] = None,
) -> Tuple[ResponseHead, HTTP11Connection]:
    """Open a GET response, see MicrogetClient.get_status_headers_and_body_stream."""
    client = MicrogetClient(config)
    return client.get_status_headers_and_body_stream(url, request_headers)
