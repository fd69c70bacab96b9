"""Config domain models for csharpierd.

Configuration is read from ~/.config/csharpierd/config.toml and describes
where the daemon keeps its files, how the CSharpier server is launched,
and the timing budgets used when starting, probing and stopping it.
"""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_PORT = 18912
DEFAULT_SERVER_COMMAND = ("dotnet", "csharpier", "server", "--server-port", "{port}")


def _tmp_path(name: str) -> Path:
    return Path(tempfile.gettempdir()) / name


@dataclass(frozen=True)
class DaemonConfig:
    """Configuration for the formatting server daemon.

    Attributes:
        port: TCP port the CSharpier server listens on.
        server_command: Command line used to launch the server. A ``{port}``
            placeholder in any argument is replaced with ``port``.
        state_file: JSON file holding the descriptor of the running server.
        lock_file: File used for mutual exclusion between CLI invocations.
        log_file: File receiving the server's stdout and stderr.
        idle_timeout: Seconds without a format request before the server is
            reaped by the next invocation.
        startup_poll_interval: Seconds between readiness probes after spawn.
        startup_poll_attempts: Readiness probes before giving up on startup.
        kill_grace_period: Seconds between SIGTERM and SIGKILL.
        health_check_timeout: HTTP timeout for liveness probes of a known server.
        readiness_check_timeout: HTTP timeout for each probe while starting up.
        request_timeout: HTTP timeout for format requests.
        lock_timeout: Seconds to wait for the lock before failing.
        lock_poll_interval: Seconds between lock acquisition attempts.

    Raises:
        ValueError: If any value is out of range.
    """

    port: int = DEFAULT_PORT
    server_command: tuple[str, ...] = DEFAULT_SERVER_COMMAND
    state_file: Path = field(default_factory=lambda: _tmp_path("csharpierd-state.json"))
    lock_file: Path = field(default_factory=lambda: _tmp_path("csharpierd.lock"))
    log_file: Path = field(default_factory=lambda: _tmp_path("csharpierd-server.log"))
    idle_timeout: float = 60 * 60
    startup_poll_interval: float = 0.2
    startup_poll_attempts: int = 50
    kill_grace_period: float = 0.5
    health_check_timeout: float = 2.0
    readiness_check_timeout: float = 0.05
    request_timeout: float = 30.0
    lock_timeout: float = 30.0
    lock_poll_interval: float = 0.1

    def __post_init__(self) -> None:
        """Validate and normalize daemon config after initialization."""
        # bool is an int subclass
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ValueError(f"port must be an integer, got {self.port!r}")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")
        if isinstance(self.server_command, str):
            raise ValueError(
                f"server_command must be a list of arguments, got string {self.server_command!r}"
            )
        if not self.server_command:
            raise ValueError("server_command cannot be empty")
        if not all(isinstance(arg, str) for arg in self.server_command):
            raise ValueError(
                f"server_command arguments must be strings, got {list(self.server_command)!r}"
            )
        if self.startup_poll_attempts <= 0:
            raise ValueError(
                f"startup_poll_attempts must be positive, got {self.startup_poll_attempts}"
            )

        positive = (
            "idle_timeout",
            "startup_poll_interval",
            "health_check_timeout",
            "readiness_check_timeout",
            "request_timeout",
            "lock_timeout",
            "lock_poll_interval",
        )
        for name in positive:
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.kill_grace_period < 0:
            raise ValueError(
                f"kill_grace_period cannot be negative, got {self.kill_grace_period}"
            )

        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "server_command", tuple(self.server_command))
        for name in ("state_file", "lock_file", "log_file"):
            object.__setattr__(self, name, Path(getattr(self, name)).expanduser())

    def command(self) -> list[str]:
        """Return the server command line with the port substituted."""
        return [arg.replace("{port}", str(self.port)) for arg in self.server_command]
