"""Decides whether to reuse, restart or reap the formatting server.

Every CLI invocation goes through ServerOrchestrator.ensure_server(), which
runs under the invocation lock:

1. Load the persisted descriptor (absent -> no known server)
2. Reap the server if it has been idle longer than the idle timeout
3. Reuse the server if its PID is alive and its port answers
4. Otherwise stop any leftover process and start a fresh server

Reaping is opportunistic: there is no background reaper, an idle server is
only stopped when some later invocation observes it.
"""

import logging
from collections.abc import Callable
from typing import Any

from csharpierd.domain.config import DaemonConfig
from csharpierd.domain.entities import ServerDescriptor, now_ms
from csharpierd.ports.daemon import (
    DescriptorStore,
    HealthProbe,
    InvocationLock,
    ServerSupervisor,
)

logger = logging.getLogger(__name__)


class ServerOrchestrator:
    """Guarantees a ready, responsive formatting server."""

    def __init__(
        self,
        config: DaemonConfig,
        store: DescriptorStore,
        lock: InvocationLock,
        health: HealthProbe,
        supervisor: ServerSupervisor,
        clock: Callable[[], int] = now_ms,
    ):
        """Initialize orchestrator.

        Args:
            config: Daemon configuration
            store: Persistence for the server descriptor
            lock: Lock serializing concurrent invocations
            health: Process and port probes
            supervisor: Spawns and stops the server process
            clock: Returns the current time in epoch milliseconds
        """
        self.config = config
        self.store = store
        self.lock = lock
        self.health = health
        self.supervisor = supervisor
        self.clock = clock

    @property
    def idle_timeout_ms(self) -> int:
        return int(self.config.idle_timeout * 1000)

    def ensure_server(self) -> ServerDescriptor:
        """Return a descriptor of a verified, responsive server.

        Starts a new server when none is known, the known one is dead or
        unresponsive, or it was just reaped for idleness. Reusing a live
        server does not refresh its last access time.

        Returns:
            Descriptor of the live server

        Raises:
            LockTimeoutError: If another invocation holds the lock too long
            ServerStartError: If a new server fails to start
        """
        with self.lock.hold():
            state = self.store.load()
            if state is not None:
                self._reap_if_idle(state)
                state = self.store.load()

            if state is not None:
                if self._is_healthy(state):
                    logger.debug(f"Reusing CSharpier server (PID {state.pid}, port {state.port})")
                    return state

                logger.info("Server process not found or not responsive, restarting...")
                if self.health.is_alive(state.pid):
                    self.supervisor.stop(state.pid)

            pid = self.supervisor.start()
            state = ServerDescriptor(pid=pid, port=self.config.port, last_access=self.clock())
            self.store.save(state)
            return state

    def _is_healthy(self, state: ServerDescriptor) -> bool:
        # A reused PID passes is_alive(), so the port must answer too
        return self.health.is_alive(state.pid) and self.health.is_responsive(state.port)

    def _reap_if_idle(self, state: ServerDescriptor) -> bool:
        """Stop the server and forget it if it has been idle too long.

        Args:
            state: Persisted descriptor

        Returns:
            True if the server was reaped
        """
        idle = state.idle_ms(self.clock())
        if idle <= self.idle_timeout_ms:
            return False

        logger.info(f"Server idle for {idle // 1000}s, shutting down...")
        if self.health.is_alive(state.pid):
            self.supervisor.stop(state.pid)
        self.store.clear()
        return True

    def touch(self, state: ServerDescriptor) -> ServerDescriptor:
        """Record a use of the server.

        Args:
            state: Descriptor of the server that was just used

        Returns:
            Descriptor with last access set to now (also persisted)
        """
        touched = state.touched(self.clock())
        self.store.save(touched)
        return touched

    def stop_server(self) -> ServerDescriptor | None:
        """Stop the known server and forget it.

        Returns:
            Descriptor of the server that was known, or None
        """
        with self.lock.hold():
            state = self.store.load()
            if state is None:
                logger.info("No CSharpier server is known")
                return None

            if self.health.is_alive(state.pid):
                self.supervisor.stop(state.pid)
            else:
                logger.info(f"Server not running (process {state.pid} not found)")
            self.store.clear()
            return state

    def status(self) -> dict[str, Any]:
        """Get server status without changing anything.

        Returns:
            Dictionary with status information
        """
        state = self.store.load()
        status: dict[str, Any] = {
            "running": False,
            "pid": None,
            "port": self.config.port,
            "last_access": None,
            "idle_seconds": None,
            "state_file": str(self.config.state_file),
            "log_file": str(self.config.log_file),
        }

        if state is None:
            status["status"] = "stopped"
            status["message"] = "No CSharpier server is running"
            return status

        idle_ms = state.idle_ms(self.clock())
        status.update(
            pid=state.pid,
            port=state.port,
            last_access=state.last_access,
            idle_seconds=max(idle_ms, 0) // 1000,
        )

        if not self.health.is_alive(state.pid):
            status["status"] = "stale"
            status["message"] = f"Process {state.pid} not found (stale state file)"
        elif not self.health.is_responsive(state.port):
            status["status"] = "unresponsive"
            status["message"] = f"Process {state.pid} exists but port {state.port} is not responding"
        elif idle_ms > self.idle_timeout_ms:
            status["running"] = True
            status["status"] = "idle"
            status["message"] = (
                f"Server is running (PID {state.pid}) but idle-expired; "
                "it will be stopped by the next invocation"
            )
        else:
            status["running"] = True
            status["status"] = "running"
            status["message"] = f"Server is running (PID {state.pid}, port {state.port})"

        return status
