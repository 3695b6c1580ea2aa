"""
HTTP primitives for microget.

This module defines the core data structures for the GET request
and the parsed response head. Both are immutable: a Request is
validated and serialized once, and a ResponseHead is shared by
reference with every invocation of the streaming callback.
"""

from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

import h11

from .exceptions import InvalidHeader, InvalidScheme, MissingHost, RequestError
from .network.utils import format_host_header, validate_port


# Type aliases for better readability
Headers = Tuple[Tuple[str, str], ...]
HeaderInput = Union[Mapping[str, str], Iterable[Tuple[str, str]]]
StatusCode = int

DEFAULT_PORT = 80


@dataclass(frozen=True)
class Request:
    """
    Immutable GET request representation.

    Only plain ``http`` is supported. The request always asks the
    server to close the connection after the response, which is
    what frames a body without Content-Length.
    """

    host: str
    port: int = DEFAULT_PORT
    target: str = "/"
    headers: Headers = ()
    scheme: str = "http"

    def __post_init__(self) -> None:
        """Validate request data after initialization."""
        if self.scheme != "http":
            raise InvalidScheme(f"Only plain HTTP is supported (got {self.scheme!r})")

        if not self.host:
            raise MissingHost("Unknown host")

        try:
            validate_port(self.port)
        except ValueError as e:
            raise RequestError(str(e), cause=e) from e

        if not isinstance(self.headers, tuple):
            raise ValueError("headers must be a tuple of (name, value) pairs")

        try:
            self.target.encode("ascii")
        except UnicodeEncodeError as e:
            raise RequestError(
                f"Request target must be ASCII, percent-encode it first ({self.target!r})",
                cause=e,
            ) from e

        # Serialize eagerly so bad headers fail here and not on the wire
        self.head_bytes

    @classmethod
    def create(
        cls,
        url: str,
        headers: Optional[HeaderInput] = None,
    ) -> "Request":
        """
        Create a Request from an absolute URL.

        Args:
            url: An absolute ``http://`` URL
            headers: Optional extra request headers, as a mapping or an
                     iterable of (name, value) pairs. Order is preserved.

        Returns:
            New Request instance

        Raises:
            InvalidScheme: If the URL is not plain http
            MissingHost: If the URL has no host
            RequestError: If the port is invalid
            InvalidHeader: If a header cannot be serialized safely
        """
        parsed = urlsplit(str(url))

        if parsed.scheme != "http":
            raise InvalidScheme(f"Only plain HTTP is supported ({url})")

        if not parsed.hostname:
            raise MissingHost(f"Unknown host ({url})")

        try:
            port = parsed.port
        except ValueError as e:
            raise RequestError(f"Invalid port in {url}", cause=e) from e
        if port is None:
            port = DEFAULT_PORT

        target = parsed.path or "/"
        if parsed.query:
            target += "?" + parsed.query

        return cls(
            host=parsed.hostname,
            port=port,
            target=target,
            headers=_normalize_headers(headers),
        )

    @property
    def host_header(self) -> str:
        """Value of the Host header, without the port when it is 80."""
        return format_host_header(self.host, self.port)

    @property
    def wire_headers(self) -> List[Tuple[str, str]]:
        """All headers in the order they are written after the request line."""
        wire: List[Tuple[str, str]] = []
        if not any(name.lower() == "host" for name, _ in self.headers):
            wire.append(("Host", self.host_header))
        wire.append(("Connection", "close"))
        wire.extend(self.headers)
        return wire

    @cached_property
    def head_bytes(self) -> bytes:
        """The serialized request line, headers and terminating blank line."""
        connection = h11.Connection(our_role=h11.CLIENT)
        try:
            event = h11.Request(
                method="GET",
                target=self.target,
                headers=self.wire_headers,
            )
            data = connection.send(event)
        except (h11.LocalProtocolError, UnicodeEncodeError) as e:
            raise InvalidHeader(f"Cannot serialize request head: {e}", cause=e) from e
        return data or b""


@dataclass(frozen=True)
class ResponseHead:
    """
    Immutable parsed response head.

    Header keys keep the case sent by the server and hold a single
    value each: when a name repeats, the last occurrence wins.
    """

    status_code: StatusCode
    reason: str = ""
    http_version: str = "1.1"
    headers: Mapping[str, str] = field(default_factory=dict)
    raw: bytes = b""

    def __post_init__(self) -> None:
        """Validate head data and freeze the header mapping."""
        if not isinstance(self.status_code, int):
            raise ValueError("status_code must be int")

        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def get_header(self, name: str) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        if name in self.headers:
            return self.headers[name]

        name_lower = name.lower()
        for header_name, header_value in self.headers.items():
            if header_name.lower() == name_lower:
                return header_value

        return None

    def has_header(self, name: str) -> bool:
        """Check if a header exists (case-insensitive)."""
        return self.get_header(name) is not None

    @property
    def content_length(self) -> Optional[int]:
        """Content-Length value or None if absent or not a number."""
        value = self.get_header("Content-Length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def is_chunked(self) -> bool:
        """Check if the response uses chunked transfer encoding."""
        value = self.get_header("Transfer-Encoding")
        if value is None:
            return False
        codings = [coding.strip().lower() for coding in value.split(",")]
        return "chunked" in codings


def _normalize_headers(headers: Optional[HeaderInput]) -> Headers:
    """Turn a mapping or pair iterable into the Request header tuple."""
    if headers is None:
        return ()

    items = headers.items() if isinstance(headers, Mapping) else headers
    return tuple((str(name), str(value)) for name, value in items)
