"""Formatting server process management (spawn/stop).

Spawns the CSharpier server as a detached process, waits for it to answer
HTTP, and terminates it on request.
"""

import logging
import os
import signal
import subprocess
import time

from csharpierd.adapters.daemon.health import HealthChecker
from csharpierd.domain.config import DaemonConfig
from csharpierd.domain.exceptions import ServerStartError, StartupTimeoutError

logger = logging.getLogger(__name__)

SIGKILL_WAIT_SECS = 1.0
DEATH_CHECK_INTERVAL = 0.05


class ProcessSupervisor:
    """Starts and stops the formatting server process.

    The spawned server is not owned by the CLI process: it runs in its own
    session and is tracked afterwards only through its persisted PID.
    """

    def __init__(self, config: DaemonConfig, health: HealthChecker):
        """Initialize process supervisor.

        Args:
            config: Daemon configuration (command, port, log file, timings)
            health: Health checker used for readiness and death checks
        """
        self.config = config
        self.health = health

    def _spawn_background_process(self, cmd: list[str]) -> subprocess.Popen:
        """Spawn the server as a detached background process.

        Args:
            cmd: Command to execute

        Returns:
            The spawned process

        Raises:
            ServerStartError: If the command cannot be executed
        """
        log_path = self.config.log_file
        log_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            # The child inherits its own copy of the descriptor
            with log_path.open("ab") as log:
                return subprocess.Popen(
                    cmd,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    stdin=subprocess.DEVNULL,
                    start_new_session=True,  # Detach from parent
                )
        except FileNotFoundError as e:
            raise ServerStartError(
                f"Cannot start formatting server: {cmd[0]!r} not found",
                hint="Install the .NET SDK and CSharpier ('dotnet tool install csharpier')",
            ) from e
        except OSError as e:
            raise ServerStartError(f"Failed to start formatting server: {e}") from e

    def _wait_for_ready(self, process: subprocess.Popen) -> bool:
        """Poll the server port until it answers.

        Args:
            process: The spawned process

        Returns:
            True if the server became responsive, False on timeout

        Raises:
            ServerStartError: If the process exits while starting
        """
        interval = self.config.startup_poll_interval
        for attempt in range(self.config.startup_poll_attempts):
            time.sleep(interval)

            exit_code = process.poll()
            if exit_code is not None:
                raise ServerStartError(
                    f"Formatting server exited during startup (exit code: {exit_code})",
                    hint=f"Check server logs at: {self.config.log_file}",
                )

            if self.health.is_responsive(
                self.config.port, timeout=self.config.readiness_check_timeout
            ):
                elapsed = (attempt + 1) * interval
                logger.info(f"Formatting server is ready (took {elapsed:.1f}s)")
                return True

        return False

    def start(self) -> int:
        """Start the formatting server and wait until it is responsive.

        Returns:
            PID of the new server

        Raises:
            ServerStartError: If the server cannot be spawned or exits early
            StartupTimeoutError: If the server never becomes responsive
        """
        cmd = self.config.command()
        logger.info(f"Starting CSharpier server: {' '.join(cmd)}")

        process = self._spawn_background_process(cmd)
        if self._wait_for_ready(process):
            logger.info(f"CSharpier server started with PID {process.pid}")
            return process.pid

        # Alive but never answered - terminate it to avoid an orphan
        budget = self.config.startup_poll_interval * self.config.startup_poll_attempts
        logger.warning(
            f"Server process {process.pid} not responding after {budget:.1f}s, terminating..."
        )
        self.stop(process.pid)
        raise StartupTimeoutError(
            f"Formatting server failed to start within {budget:.1f}s",
            hint=f"Check server logs at: {self.config.log_file}",
        )

    def _send_signal(self, pid: int, sig: signal.Signals) -> bool:
        """Send a signal, swallowing delivery failures.

        Returns:
            True if the signal was delivered
        """
        try:
            os.kill(pid, sig)
            return True
        except OSError as e:
            # Process may already be gone
            logger.debug(f"Failed to send {sig.name} to {pid}: {e}")
            return False

    def _wait_for_death(self, pid: int, timeout_secs: float) -> bool:
        """Wait for a process to die within the given timeout.

        Returns:
            True if process died, False if still alive after timeout
        """
        checks = max(1, int(timeout_secs / DEATH_CHECK_INTERVAL))
        for _ in range(checks):
            time.sleep(DEATH_CHECK_INTERVAL)
            if not self.health.is_alive(pid):
                return True
        return False

    def stop(self, pid: int) -> None:
        """Stop a server process: SIGTERM, then SIGKILL after the grace period.

        Args:
            pid: Process ID to stop
        """
        logger.info(f"Stopping CSharpier server (PID {pid})...")
        if not self._send_signal(pid, signal.SIGTERM):
            return

        time.sleep(self.config.kill_grace_period)
        if self.health.is_alive(pid):
            logger.warning(f"Server {pid} did not stop gracefully, sending SIGKILL...")
            if self._send_signal(pid, signal.SIGKILL) and not self._wait_for_death(
                pid, SIGKILL_WAIT_SECS
            ):
                logger.error(f"Server {pid} survived SIGKILL! Manual cleanup required.")
        else:
            logger.info("Server stopped gracefully")
