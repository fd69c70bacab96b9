"""Factory for daemon component instantiation.

This module centralizes the wiring of the orchestrator and its adapters,
keeping the CLI layer free from direct adapter imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from csharpierd.adapters.daemon.client import FormatClient
    from csharpierd.core.orchestrator import ServerOrchestrator
    from csharpierd.domain.config import DaemonConfig


class DaemonFactory:
    """Factory for creating daemon-related instances.

    Args:
        config: DaemonConfig with paths, port and timings.
    """

    def __init__(self, config: DaemonConfig) -> None:
        self._config = config

    def create_orchestrator(self) -> ServerOrchestrator:
        """Create an orchestrator wired to the real file, process and HTTP adapters.

        Returns:
            ServerOrchestrator instance.
        """
        from csharpierd.adapters.daemon.health import HealthChecker
        from csharpierd.adapters.daemon.lifecycle import ProcessSupervisor
        from csharpierd.adapters.daemon.lock import LockManager
        from csharpierd.core.orchestrator import ServerOrchestrator
        from csharpierd.shared.state_io import StateStore

        config = self._config
        health = HealthChecker(timeout=config.health_check_timeout)
        return ServerOrchestrator(
            config=config,
            store=StateStore(config.state_file),
            lock=LockManager(
                config.lock_file,
                timeout=config.lock_timeout,
                poll_interval=config.lock_poll_interval,
            ),
            health=health,
            supervisor=ProcessSupervisor(config, health),
        )

    def create_format_client(self) -> FormatClient:
        """Create a format client backed by a new orchestrator.

        Returns:
            FormatClient instance.
        """
        from csharpierd.adapters.daemon.client import FormatClient

        return FormatClient(
            self.create_orchestrator(), timeout=self._config.request_timeout
        )
