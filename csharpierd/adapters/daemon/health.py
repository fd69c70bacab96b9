"""Process and HTTP health probes for the formatting server."""

import contextlib
import logging
import os

import httpx

logger = logging.getLogger(__name__)


class HealthChecker:
    """Checks whether a server process exists and whether its port answers.

    A pid match alone is not trusted, since the OS may reuse the pid of an
    exited server. Callers pair is_alive() with is_responsive().
    """

    def __init__(self, timeout: float = 2.0, transport: httpx.BaseTransport | None = None):
        """Initialize health checker.

        Args:
            timeout: Default HTTP timeout for is_responsive() in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout
        self.transport = transport

    def is_alive(self, pid: int) -> bool:
        """Check if a process is alive.

        Args:
            pid: Process ID

        Returns:
            True if process exists, is not a zombie and can be signalled
        """
        try:
            self._reap_zombie(pid)
            # Send signal 0 (no-op, just checks if process exists)
            os.kill(pid, 0)
            return True
        except OSError:
            return False

    def _reap_zombie(self, pid: int) -> None:
        """Attempt to reap a zombie process if it's our child.

        Args:
            pid: Process ID to reap
        """
        with contextlib.suppress(ChildProcessError, OSError):
            os.waitpid(pid, os.WNOHANG)

    def is_responsive(self, port: int, timeout: float | None = None) -> bool:
        """Check if something answers HTTP on the port.

        Any response counts, including 404: the server has no root route,
        we only need to know it is listening.

        Args:
            port: TCP port on localhost
            timeout: HTTP timeout in seconds (default: self.timeout)

        Returns:
            True if an HTTP response was received
        """
        url = f"http://localhost:{port}/"
        try:
            with httpx.Client(
                timeout=timeout if timeout is not None else self.timeout,
                transport=self.transport,
                trust_env=False,  # never route localhost through a proxy
            ) as client:
                response = client.get(url)
        except httpx.HTTPError as e:
            logger.debug(f"Server on port {port} not responding: {e!r}")
            return False

        logger.debug(f"Server on port {port} answered with status {response.status_code}")
        return True
