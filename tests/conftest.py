"""Pytest configuration and shared fixtures."""

import json
import socket
import threading
from collections.abc import Callable, Iterator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest

from csharpierd.domain.config import DaemonConfig

# ============================================================================
# Configuration
# ============================================================================


def find_free_port() -> int:
    """Ask the OS for a currently unused TCP port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def free_port() -> int:
    """An unused TCP port."""
    return find_free_port()


@pytest.fixture
def daemon_config(tmp_path: Path, free_port: int) -> DaemonConfig:
    """DaemonConfig with all files under tmp_path and fast timings.

    Keeps tests away from the real state and lock files in the temp dir.
    """
    return DaemonConfig(
        port=free_port,
        state_file=tmp_path / "state.json",
        lock_file=tmp_path / "daemon.lock",
        log_file=tmp_path / "server.log",
        startup_poll_interval=0.01,
        startup_poll_attempts=5,
        kill_grace_period=0.0,
        health_check_timeout=0.5,
        readiness_check_timeout=0.5,
        lock_timeout=0.3,
        lock_poll_interval=0.01,
    )


# ============================================================================
# Clock
# ============================================================================


class FakeClock:
    """Settable epoch-millisecond clock for orchestrator tests."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# HTTP Stub Server
# ============================================================================
# A real HTTP server on localhost, for tests that must go through the
# network stack instead of an httpx mock transport.


class StubServer:
    """In-thread HTTP server answering from per-route handlers."""

    def __init__(self, routes: dict[tuple[str, str], Callable[[dict | None], tuple[int, object]]]):
        self.routes = routes
        self.requests: list[tuple[str, str, dict | None]] = []

        stub = self

        class Handler(BaseHTTPRequestHandler):
            def _dispatch(self, method: str) -> None:
                body = None
                length = int(self.headers.get("Content-Length", 0))
                if length:
                    body = json.loads(self.rfile.read(length))
                stub.requests.append((method, self.path, body))

                route = stub.routes.get((method, self.path))
                if route is None:
                    self.send_error(404)
                    return

                status, payload = route(body)
                data = (
                    payload.encode("utf-8")
                    if isinstance(payload, str)
                    else json.dumps(payload).encode("utf-8")
                )
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(data)))
                self.end_headers()
                self.wfile.write(data)

            def do_GET(self) -> None:
                self._dispatch("GET")

            def do_POST(self) -> None:
                self._dispatch("POST")

            def log_message(self, format, *args):
                pass

        self.server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self.port = self.server.server_address[1]
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)

    def start(self) -> "StubServer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self.server.shutdown()
        self.server.server_close()


@pytest.fixture
def stub_server() -> Iterator[Callable[..., StubServer]]:
    """Factory fixture starting StubServers that are shut down after the test."""
    servers: list[StubServer] = []

    def start(routes=None) -> StubServer:
        server = StubServer(routes or {}).start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.stop()
