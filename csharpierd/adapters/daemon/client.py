"""Formatting client for the CSharpier server.

Makes sure a server is running, sends the source text to its ``/format``
endpoint and records the access so the server is not reaped while in use.
"""

import logging
import os

import httpx

from csharpierd.core.orchestrator import ServerOrchestrator
from csharpierd.domain.entities import FormatRequest, FormatResult
from csharpierd.domain.exceptions import BackendError

logger = logging.getLogger(__name__)


def resolve_file_name(file_name: str) -> str:
    """Make a file name absolute, relative to the working directory.

    The server only uses the path to pick a formatter, so the file does not
    have to exist.
    """
    if os.path.isabs(file_name):
        return file_name
    return os.path.abspath(file_name)


class FormatClient:
    """Sends format requests to the server managed by an orchestrator."""

    def __init__(
        self,
        orchestrator: ServerOrchestrator,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize format client.

        Args:
            orchestrator: Provides a running server and records accesses
            timeout: HTTP timeout for format requests in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.orchestrator = orchestrator
        self.timeout = timeout
        self.transport = transport

    def _post_format(self, port: int, request: FormatRequest) -> httpx.Response:
        """POST the request to the server.

        Raises:
            BackendError: If the server cannot be reached
        """
        url = f"http://localhost:{port}/format"
        try:
            with httpx.Client(
                timeout=self.timeout, transport=self.transport, trust_env=False
            ) as client:
                return client.post(url, json=request.to_dict())
        except httpx.HTTPError as e:
            raise BackendError(f"Format request to {url} failed: {e}") from e

    def format_file(self, file_name: str, contents: str) -> FormatResult:
        """Format source text and return the server's full result.

        Args:
            file_name: File name used for file-type detection
            contents: Source text to format

        Returns:
            Parsed server result (may carry a failure status)

        Raises:
            ServerStartError: If no server could be started
            BackendError: If the server answers with a non-2xx status or an
                unreadable body
        """
        state = self.orchestrator.ensure_server()
        request = FormatRequest(file_name=resolve_file_name(file_name), file_contents=contents)

        response = self._post_format(state.port, request)
        if not response.is_success:
            raise BackendError(
                f"Server returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            result = FormatResult.from_dict(response.json())
        except ValueError as e:
            raise BackendError(
                f"Invalid response from server: {e}", status_code=response.status_code
            ) from e

        self.orchestrator.touch(state)
        logger.debug(f"Format {request.file_name}: {result.status_name}")
        return result

    def format_code(self, file_name: str, contents: str) -> str:
        """Format source text.

        Args:
            file_name: File name used for file-type detection
            contents: Source text to format

        Returns:
            The formatted text

        Raises:
            ServerStartError: If no server could be started
            BackendError: If the server fails the request
        """
        result = self.format_file(file_name, contents)
        if result.formatted_file is None:
            raise BackendError(
                result.error_message
                or f"Formatting failed with status {result.status_name!r} and no error message"
            )
        return result.formatted_file
