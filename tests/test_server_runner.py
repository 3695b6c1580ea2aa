"""
Integration tests running the client against a real server process.

The server is tests/streaming_app.py, booted and torn down with
ServerRunner, which is tested along the way.
"""

import logging
import os
import sys
import time

import pytest

from microget import (
    BodyCollector,
    ClientConfig,
    ReadTimeout,
    ServerRunner,
    ServerRunnerError,
    perform_get,
)
from microget.network import find_free_port

APP_PATH = os.path.join(os.path.dirname(__file__), "streaming_app.py")
APP_COMMAND = [sys.executable, APP_PATH, "{port}"]

# Same app, but deaf to SIGTERM so that stop() has to escalate
STUBBORN_COMMAND = [
    sys.executable,
    "-c",
    "import signal, sys; "
    "signal.signal(signal.SIGTERM, signal.SIG_IGN); "
    f"sys.path.insert(0, {os.path.dirname(APP_PATH)!r}); "
    "import streaming_app; "
    "streaming_app.main(int(sys.argv[1]))",
    "{port}",
]


@pytest.fixture(scope="module")
def server():
    runner = ServerRunner("streaming_app", APP_COMMAND, find_free_port(), alive_path="/alive")
    runner.start(timeout=10.0)
    yield runner
    runner.stop()


@pytest.fixture
def fast_config():
    return ClientConfig(open_timeout=1.0, read_timeout=2.0)


def url(server: ServerRunner, path: str) -> str:
    return f"http://{server.host}:{server.port}{path}"


class TestAgainstStreamingApp:
    """Test perform_get against the streaming app."""

    def test_alive(self, server, fast_config) -> None:
        collector = BodyCollector()
        perform_get(url(server, "/alive"), collector, config=fast_config)
        assert collector.status_code == 200
        assert collector.body == b"Yes!"

    def test_empty_response_still_yields_head(self, server, fast_config, recording_callback) -> None:
        callback = recording_callback()
        perform_get(url(server, "/empty-response"), callback, config=fast_config)
        assert callback.calls == [
            (304, {"Location": "http://elsewhere.com", "Connection": "close"}, b""),
        ]

    def test_dripping_response(self, server, fast_config) -> None:
        """Messages arrive in separate chunks as the server sends them."""
        deltas_and_chunks = []
        last = time.monotonic()

        def callback(status_code, headers, chunk):
            nonlocal last
            assert status_code == 200
            assert "Content-Length" in headers
            now = time.monotonic()
            deltas_and_chunks.append((now - last, chunk.copy()))
            last = now
            return True

        perform_get(url(server, "/with-content-length"), callback, chunk_size=256, config=fast_config)

        first_delta, first_chunk = deltas_and_chunks.pop(0)
        assert first_chunk == b""
        assert b"".join(c for _, c in deltas_and_chunks) == (
            b"Message number 0\nMessage number 1\nMessage number 2\n"
        )
        for delta, chunk in deltas_and_chunks:
            assert b"Message number " in chunk
            assert delta >= 0.1

    def test_read_timeout(self, server) -> None:
        config = ClientConfig(open_timeout=1.0, read_timeout=0.3)
        started = time.monotonic()
        with pytest.raises(ReadTimeout):
            perform_get(url(server, "/very-slow"), lambda *args: True, config=config)
        assert time.monotonic() - started < 3.0

    def test_huge_response(self, server, fast_config) -> None:
        received = 0

        def callback(status_code, headers, chunk):
            nonlocal received
            received += len(chunk)
            return True

        total = perform_get(url(server, "/huge-response"), callback, chunk_size=64 * 1024, config=fast_config)

        assert total == received == 8 * 1024 * 1024

    def test_not_found(self, server, fast_config) -> None:
        collector = BodyCollector()
        assert perform_get(url(server, "/nope"), collector, config=fast_config) == 0
        assert collector.status_code == 404


class TestServerRunner:
    """Test starting and stopping server processes."""

    def test_command_gets_port(self) -> None:
        runner = ServerRunner("app", ["serve", "--port", "{port}"], 9393)
        assert runner.command == ["serve", "--port", "9393"]
        assert runner.alive_url == "http://127.0.0.1:9393/"

    def test_lifecycle(self, tmp_path) -> None:
        runner = ServerRunner(
            "lifecycle", APP_COMMAND, find_free_port(),
            alive_path="/alive", log_dir=str(tmp_path),
        )
        assert not runner.running
        assert runner.stop() is False

        assert runner.start(timeout=10.0) is True
        assert runner.running
        assert runner.start() is True

        assert runner.stop() is True
        assert not runner.running
        assert runner.stop() is False
        assert (tmp_path / "server_runner_lifecycle_stdout.log").exists()
        assert (tmp_path / "server_runner_lifecycle_stderr.log").exists()

    def test_context_manager(self) -> None:
        with ServerRunner("ctx", APP_COMMAND, find_free_port(), alive_path="/alive") as runner:
            collector = BodyCollector()
            perform_get(runner.alive_url, collector)
            assert collector.body == b"Yes!"
        assert not runner.running

    def test_exiting_command(self) -> None:
        runner = ServerRunner(
            "exits", [sys.executable, "-c", "import sys; sys.exit(3)"], find_free_port(),
            poll_interval=0.1,
        )
        with pytest.raises(ServerRunnerError):
            runner.start(timeout=5.0)
        assert not runner.running

    def test_missing_executable(self) -> None:
        runner = ServerRunner("missing", ["/nonexistent/server-binary"], find_free_port())
        with pytest.raises(ServerRunnerError, match="Cannot spawn"):
            runner.start()
        assert not runner.running

    def test_never_answering_server(self) -> None:
        runner = ServerRunner(
            "silent", [sys.executable, "-c", "import time; time.sleep(30)"], find_free_port(),
            poll_interval=0.1,
        )
        started = time.monotonic()
        with pytest.raises(ServerRunnerError, match="Could not get the server started"):
            runner.start(timeout=0.5)
        assert time.monotonic() - started < 5.0
        assert not runner.running

    def test_stubborn_server_is_killed(self, caplog) -> None:
        caplog.set_level(logging.WARNING, logger="microget.server_runner")
        runner = ServerRunner("stubborn", STUBBORN_COMMAND, find_free_port(), alive_path="/alive")
        runner.start(timeout=10.0)

        assert runner.stop(grace_period=0.2) is True
        assert not runner.running
        assert "killing it" in caplog.text
