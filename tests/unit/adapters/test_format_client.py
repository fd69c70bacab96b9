"""Unit tests for the format client."""

import json
import os
from unittest.mock import MagicMock

import httpx
import pytest

from csharpierd.adapters.daemon.client import FormatClient, resolve_file_name
from csharpierd.core.orchestrator import ServerOrchestrator
from csharpierd.domain.entities import FormatStatus, ServerDescriptor
from csharpierd.domain.exceptions import BackendError, StartupTimeoutError

SOURCE = "public class Foo{public void Bar(){}}\n"


@pytest.fixture
def descriptor() -> ServerDescriptor:
    return ServerDescriptor(pid=4242, port=18912, last_access=1_000)


@pytest.fixture
def orchestrator(descriptor: ServerDescriptor) -> MagicMock:
    orchestrator = MagicMock(spec=ServerOrchestrator)
    orchestrator.ensure_server.return_value = descriptor
    return orchestrator


def make_client(orchestrator, handler) -> FormatClient:
    return FormatClient(orchestrator, timeout=5.0, transport=httpx.MockTransport(handler))


def echo_handler(requests: list):
    """Backend that returns the submitted contents as formatted."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append((request, body))
        return httpx.Response(200, json={"formattedFile": body["fileContents"], "status": "Formatted"})

    return handler


class TestResolveFileName:
    def test_absolute_path_unchanged(self):
        assert resolve_file_name("/src/Foo.cs") == "/src/Foo.cs"

    def test_relative_path_resolved_against_cwd(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        assert resolve_file_name("Foo.cs") == os.path.join(os.getcwd(), "Foo.cs")


class TestFormatCode:
    """Tests for FormatClient.format_code."""

    def test_round_trip_returns_contents_unchanged(self, orchestrator):
        requests = []
        client = make_client(orchestrator, echo_handler(requests))

        assert client.format_code("Foo.cs", SOURCE) == SOURCE

    def test_posts_to_format_endpoint(self, orchestrator, monkeypatch, tmp_path):
        """Test the request targets the server port with an absolute path."""
        monkeypatch.chdir(tmp_path)
        requests = []
        client = make_client(orchestrator, echo_handler(requests))

        client.format_code("src/Foo.cs", SOURCE)

        request, body = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://localhost:18912/format"
        assert body == {
            "fileName": os.path.join(os.getcwd(), "src", "Foo.cs"),
            "fileContents": SOURCE,
        }

    def test_success_touches_descriptor(self, orchestrator, descriptor):
        client = make_client(orchestrator, echo_handler([]))

        client.format_code("Foo.cs", SOURCE)

        orchestrator.touch.assert_called_once_with(descriptor)

    def test_backend_error_message_is_surfaced(self, orchestrator):
        def handler(request):
            return httpx.Response(200, json={"errorMessage": "parse error", "status": "Failed"})

        client = make_client(orchestrator, handler)

        with pytest.raises(BackendError, match="parse error"):
            client.format_code("Foo.cs", "class {")

        # The server was used, so the access still counts
        orchestrator.touch.assert_called_once()

    def test_missing_error_message_names_status(self, orchestrator):
        def handler(request):
            return httpx.Response(200, json={"status": "UnsupportedFile"})

        client = make_client(orchestrator, handler)

        with pytest.raises(BackendError, match="UnsupportedFile"):
            client.format_code("notes.txt", "hello")

    def test_non_2xx_raises_with_body(self, orchestrator):
        def handler(request):
            return httpx.Response(500, text="internal failure")

        client = make_client(orchestrator, handler)

        with pytest.raises(BackendError, match="500: internal failure") as exc_info:
            client.format_code("Foo.cs", SOURCE)

        assert exc_info.value.status_code == 500
        orchestrator.touch.assert_not_called()

    def test_invalid_json_raises(self, orchestrator):
        def handler(request):
            return httpx.Response(200, text="<html>")

        client = make_client(orchestrator, handler)

        with pytest.raises(BackendError, match="Invalid response"):
            client.format_code("Foo.cs", SOURCE)
        orchestrator.touch.assert_not_called()

    def test_connection_failure_raises(self, orchestrator):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(orchestrator, handler)

        with pytest.raises(BackendError, match="connection refused"):
            client.format_code("Foo.cs", SOURCE)

    def test_startup_failure_propagates_without_request(self, orchestrator):
        orchestrator.ensure_server.side_effect = StartupTimeoutError("no server")
        requests = []
        client = make_client(orchestrator, echo_handler(requests))

        with pytest.raises(StartupTimeoutError):
            client.format_code("Foo.cs", SOURCE)

        assert requests == []

    def test_format_file_returns_full_result(self, orchestrator):
        def handler(request):
            return httpx.Response(200, json={"status": "Ignored"})

        result = make_client(orchestrator, handler).format_file("Foo.cs", SOURCE)

        assert result.status is FormatStatus.IGNORED
        assert result.formatted_file is None


class TestFormatOverNetwork:
    """Format through a real HTTP server."""

    def test_round_trip_through_stub_server(self, stub_server):
        server = stub_server(
            {
                ("POST", "/format"): lambda body: (
                    200,
                    {"formattedFile": body["fileContents"], "status": "Formatted"},
                )
            }
        )
        orchestrator = MagicMock(spec=ServerOrchestrator)
        orchestrator.ensure_server.return_value = ServerDescriptor(
            pid=os.getpid(), port=server.port, last_access=0
        )

        assert FormatClient(orchestrator).format_code("Foo.cs", SOURCE) == SOURCE
