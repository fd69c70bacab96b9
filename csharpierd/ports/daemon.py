"""Port interfaces for formatting server management.

Defines the protocols the orchestrator depends on, so the process and
network side effects can be replaced in tests.
"""

from contextlib import AbstractContextManager
from typing import Protocol

from csharpierd.domain.entities import ServerDescriptor


class HealthProbe(Protocol):
    """Protocol for checking a server process and its port."""

    def is_alive(self, pid: int) -> bool:
        """Check whether the process exists and can be signalled."""
        ...

    def is_responsive(self, port: int, timeout: float | None = None) -> bool:
        """Check whether anything answers HTTP on the port."""
        ...


class ServerSupervisor(Protocol):
    """Protocol for spawning and terminating the server process."""

    def start(self) -> int:
        """Start the server and wait until it is responsive.

        Returns:
            PID of the new server

        Raises:
            ServerStartError: If the server fails to start
        """
        ...

    def stop(self, pid: int) -> None:
        """Terminate the process, escalating to SIGKILL if needed."""
        ...


class DescriptorStore(Protocol):
    """Protocol for persisting the server descriptor."""

    def load(self) -> ServerDescriptor | None: ...

    def save(self, descriptor: ServerDescriptor) -> None: ...

    def clear(self) -> None: ...


class InvocationLock(Protocol):
    """Protocol for the lock serializing CLI invocations."""

    def hold(self) -> AbstractContextManager[None]:
        """Hold the lock for the duration of a with-block."""
        ...
