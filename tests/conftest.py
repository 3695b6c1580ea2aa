"""
Pytest configuration for microget tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import os
import socket
import sys
import threading
from typing import List, Sequence, Union

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from microget.config import ClientConfig
from microget.network.mock import MockNetworkStream


Step = Union[bytes, float]


class ScriptedServer:
    """
    Loopback server that answers one connection with a scripted response.

    The script is a sequence of steps: bytes are sent as they are,
    numbers pause the server for that many seconds. The connection is
    closed when the script ends.
    """

    def __init__(self, script: Sequence[Step]) -> None:
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self._listener.settimeout(5.0)
        self.port = self._listener.getsockname()[1]
        self.request = b""
        self._script = list(script)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> "ScriptedServer":
        self._thread.start()
        return self

    def url(self, path: str = "/") -> str:
        return f"http://127.0.0.1:{self.port}{path}"

    def _serve(self) -> None:
        try:
            conn, _ = self._listener.accept()
        except OSError:
            return

        with conn:
            conn.settimeout(5.0)
            try:
                while b"\r\n\r\n" not in self.request:
                    data = conn.recv(4096)
                    if not data:
                        break
                    self.request += data

                for step in self._script:
                    if isinstance(step, (int, float)):
                        if self._stop.wait(step):
                            return
                    else:
                        conn.sendall(step)
            except OSError:
                # The client went away, e.g. after aborting the stream
                return

    def stop(self) -> None:
        self._stop.set()
        self._listener.close()
        self._thread.join(5.0)


@pytest.fixture
def scripted_server():
    """Start loopback servers replaying scripted responses."""
    servers: List[ScriptedServer] = []

    def _create(*script: Step) -> ScriptedServer:
        server = ScriptedServer(script).start()
        servers.append(server)
        return server

    yield _create

    for server in servers:
        server.stop()


@pytest.fixture
def config():
    """Client configuration with short timeouts for tests."""
    return ClientConfig(open_timeout=1.0, read_timeout=0.3, chunk_size=16)


@pytest.fixture
def response_stream():
    """Create a mock stream that replays response segments."""
    def _create(*segments: bytes) -> MockNetworkStream:
        stream = MockNetworkStream()
        for segment in segments:
            stream.add_data(segment)
        return stream
    return _create


@pytest.fixture
def sample_response():
    """The smallest useful response: a status line, one header and a body."""
    return (
        b"HTTP/1.0 200 OK\r\n"
        b"Content-Type:   text/plain\r\n"
        b"\r\n"
        b"Yes!"
    )


class RecordingCallback:
    """Streaming callback that copies every chunk it receives."""

    def __init__(self, stop_after: int = -1) -> None:
        self.calls: List[tuple] = []
        self._stop_after = stop_after

    def __call__(self, status_code, headers, chunk) -> bool:
        self.calls.append((status_code, dict(headers), chunk.copy()))
        return len(self.calls) != self._stop_after

    @property
    def chunks(self) -> List[bytes]:
        return [chunk for _, _, chunk in self.calls]

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)


@pytest.fixture
def recording_callback():
    """Create a callback that records calls; stop_after=N aborts on the Nth call."""
    def _create(stop_after: int = -1) -> RecordingCallback:
        return RecordingCallback(stop_after)
    return _create
