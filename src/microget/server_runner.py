"""
A simplistic runner for external web servers within a separate process.

Used by integration tests to boot a disposable HTTP server, wait for it
to answer, and tear it down again.
"""

import logging
import os
import subprocess
import time
from typing import IO, List, Optional, Sequence

from .config import ClientConfig
from .client import MicrogetClient
from .exceptions import ConnectionError, ServerRunnerError, TimeoutError

logger = logging.getLogger(__name__)


class ServerRunner:
    """
    Starts a server command as a subprocess and stops it again.

    The command is an argv list; any ``{port}`` in its items is replaced
    with the port. Readiness is detected by GETting the alive path until
    the server answers with a response head.
    """

    SHOULD_CONNECT_WITHIN = 2.0
    POLL_INTERVAL = 0.5
    GRACE_PERIOD = 0.5

    def __init__(
        self,
        name: str,
        command: Sequence[str],
        port: int,
        alive_path: str = "/",
        host: str = "127.0.0.1",
        log_dir: Optional[str] = None,
        poll_interval: float = POLL_INTERVAL,
    ):
        """
        Initialize the runner.

        Args:
            name: Short name used in log file names
            command: The server argv, may contain ``{port}``
            port: The port the server listens on
            alive_path: Path polled to detect that the server is up
            host: Address the server is reachable on
            log_dir: Directory for the server's stdout/stderr logs.
                     When None the output is discarded.
            poll_interval: Seconds between readiness polls
        """
        self.name = name
        self.port = port
        self.host = host
        self.alive_path = alive_path
        self.log_dir = log_dir
        self.poll_interval = poll_interval
        self._command = list(command)
        self._process: Optional[subprocess.Popen] = None
        self._log_files: List[IO[bytes]] = []
        self._running = False

    @property
    def command(self) -> List[str]:
        return [part.format(port=self.port) for part in self._command]

    @property
    def alive_url(self) -> str:
        return f"http://{self.host}:{self.port}{self.alive_path}"

    @property
    def running(self) -> bool:
        """Tells whether the server is currently running."""
        return self._running

    def start(self, timeout: float = SHOULD_CONNECT_WITHIN) -> bool:
        """
        Start the server as a subprocess and wait until it answers.

        Args:
            timeout: Seconds to wait for the server to boot up

        Returns:
            True once the server is reachable

        Raises:
            ServerRunnerError: If the server exits or does not answer in time
        """
        if self._process is not None:
            return True

        command = self.command
        logger.info(f"Spinning up {self.name} with {command!r}")
        stdout, stderr = self._open_logs()
        try:
            self._process = subprocess.Popen(command, stdout=stdout, stderr=stderr)
        except OSError as e:
            self._cleanup()
            raise ServerRunnerError(f"Cannot spawn server {self.name}: {e}", cause=e) from e

        try:
            self._wait_until_alive(timeout)
        except BaseException:
            self.stop()
            raise

        self._running = True
        logger.info(f"Server {self.name} is up on port {self.port}")
        return True

    def stop(self, grace_period: float = GRACE_PERIOD) -> bool:
        """
        Stop the server with progressively harsher requests.

        Asks the process to terminate twice, waiting grace_period after
        each request, then kills it.

        Args:
            grace_period: Seconds to wait after each step

        Returns:
            True if a server was stopped, False if none was running
        """
        process = self._process
        if process is None:
            return False

        for action in ("terminate", "terminate", "kill"):
            if process.poll() is not None:
                break
            if action == "kill":
                logger.warning(f"Server {self.name} ignored termination, killing it")
            getattr(process, action)()
            try:
                process.wait(timeout=grace_period)
            except subprocess.TimeoutExpired:
                continue
            break

        self._cleanup()
        logger.info(f"Server {self.name} stopped")
        return True

    def _wait_until_alive(self, timeout: float) -> None:
        started = time.monotonic()
        while not self._is_alive():
            code = self._process.poll()
            if code is not None:
                raise ServerRunnerError(f"Server {self.name} exited with code {code} during startup")

            if time.monotonic() - started > timeout:
                raise ServerRunnerError(
                    f"Could not get the server started in {timeout} seconds, "
                    "something might be misconfigured"
                )
            time.sleep(self.poll_interval)

    def _is_alive(self) -> bool:
        client = MicrogetClient(
            ClientConfig(open_timeout=self.poll_interval, read_timeout=self.poll_interval * 4)
        )
        try:
            head, connection = client.get_status_headers_and_body_stream(self.alive_url)
        except (ConnectionError, TimeoutError):
            # Refused, reset or not answering yet
            return False
        connection.close()
        logger.debug(f"Alive check answered with {head.status_code}")
        return True

    def _open_logs(self):
        if self.log_dir is None:
            return subprocess.DEVNULL, subprocess.DEVNULL

        # Do not pollute the test output with the server logs
        os.makedirs(self.log_dir, exist_ok=True)
        stdout = open(os.path.join(self.log_dir, f"server_runner_{self.name}_stdout.log"), "ab")
        stderr = open(os.path.join(self.log_dir, f"server_runner_{self.name}_stderr.log"), "ab")
        self._log_files = [stdout, stderr]
        return stdout, stderr

    def _cleanup(self) -> None:
        if self._process is not None:
            self._process.wait()
        for log_file in self._log_files:
            log_file.close()
        self._log_files = []
        self._process = None
        self._running = False

    def __enter__(self) -> "ServerRunner":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
