"""
microget - unbuffered HTTP/1.1 streaming client

A no-nonsense client for doing GETs of large bodies, fast: the body
is streamed to a callback through one reusable buffer, with a hard
timeout on connects and a sliding idle timeout on stalled reads.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .config import ClientConfig
from .http_primitives import Request, ResponseHead
from .http11 import HTTP11Connection, ConnectionState, parse_response_head
from .streams import BodyCollector, BodyStreamer, ChunkBuffer
from .client import MicrogetClient, perform_get, get_status_headers_and_body_stream
from .server_runner import ServerRunner
from .exceptions import (
    MicrogetError,
    RequestError,
    InvalidScheme,
    MissingHost,
    InvalidHeader,
    ConnectionError,
    ConnectError,
    TransportError,
    ProtocolError,
    HeaderSizeExceeded,
    TruncatedHeaders,
    MalformedStatusLine,
    MalformedHeaderLine,
    UnsupportedTransferEncoding,
    TimeoutError,
    OpenTimeout,
    ReadTimeout,
    WriteTimeout,
    StreamError,
    ServerRunnerError,
)

__all__ = [
    "ClientConfig",
    "Request",
    "ResponseHead",
    "HTTP11Connection",
    "ConnectionState",
    "parse_response_head",
    "BodyCollector",
    "BodyStreamer",
    "ChunkBuffer",
    "MicrogetClient",
    "perform_get",
    "get_status_headers_and_body_stream",
    "ServerRunner",
    "MicrogetError",
    "RequestError",
    "InvalidScheme",
    "MissingHost",
    "InvalidHeader",
    "ConnectionError",
    "ConnectError",
    "TransportError",
    "ProtocolError",
    "HeaderSizeExceeded",
    "TruncatedHeaders",
    "MalformedStatusLine",
    "MalformedHeaderLine",
    "UnsupportedTransferEncoding",
    "TimeoutError",
    "OpenTimeout",
    "ReadTimeout",
    "WriteTimeout",
    "StreamError",
    "ServerRunnerError",
]
