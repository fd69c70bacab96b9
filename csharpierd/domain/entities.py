"""Domain entities and value objects.

Core domain models representing the running formatting server and the
requests sent to it. These are pure Python dataclasses with no dependencies
on infrastructure.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class FormatStatus(str, Enum):
    """Outcome reported by the CSharpier server for a format request."""

    FORMATTED = "Formatted"
    IGNORED = "Ignored"
    FAILED = "Failed"
    UNSUPPORTED_FILE = "UnsupportedFile"


@dataclass(frozen=True)
class ServerDescriptor:
    """The one formatting server the daemon believes is active.

    The descriptor is persisted between CLI invocations. It is a belief, not
    a guarantee: the pid may have exited or been reused by the OS, so both
    pid and port must be re-verified before the server is trusted.

    Attributes:
        pid: Process ID of the spawned server.
        port: TCP port the server listens on.
        last_access: Epoch milliseconds of the last successful format request.

    Raises:
        ValueError: If pid, port or last_access is out of range.
    """

    pid: int
    port: int
    last_access: int

    def __post_init__(self) -> None:
        """Validate descriptor fields after initialization."""
        if self.pid <= 0:
            raise ValueError(f"pid must be positive, got {self.pid}")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")
        if self.last_access < 0:
            raise ValueError(f"last_access cannot be negative, got {self.last_access}")

    @classmethod
    def from_dict(cls, data: Any) -> ServerDescriptor:
        """Build a descriptor from its JSON representation.

        Args:
            data: Decoded JSON object with ``pid``, ``port`` and ``lastAccess``.

        Returns:
            ServerDescriptor instance.

        Raises:
            ValueError: If the data is not an object or a field is missing or
                not an integer.
        """
        if not isinstance(data, dict):
            raise ValueError("Server state must be a JSON object")

        values = {}
        for key in ("pid", "port", "lastAccess"):
            value = data.get(key)
            # bool is an int subclass; reject it explicitly
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"Server state field {key!r} must be an integer")
            values[key] = value

        return cls(pid=values["pid"], port=values["port"], last_access=values["lastAccess"])

    def to_dict(self) -> dict[str, int]:
        """Serialize to the JSON representation used in the state file."""
        return {"pid": self.pid, "port": self.port, "lastAccess": self.last_access}

    def idle_ms(self, now: int) -> int:
        """Milliseconds elapsed since the last access."""
        return now - self.last_access

    def touched(self, now: int) -> ServerDescriptor:
        """Return a copy with ``last_access`` set to ``now``."""
        return replace(self, last_access=now)


@dataclass(frozen=True)
class FormatRequest:
    """Payload for the server's ``/format`` endpoint.

    Attributes:
        file_name: Absolute path of the file, used by the server to detect
            the file type. Nothing is written to it.
        file_contents: Raw source text to format.
    """

    file_name: str
    file_contents: str

    def to_dict(self) -> dict[str, str]:
        return {"fileName": self.file_name, "fileContents": self.file_contents}


@dataclass(frozen=True)
class FormatResult:
    """Response from the server's ``/format`` endpoint."""

    status: FormatStatus | str
    formatted_file: str | None = None
    error_message: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FormatResult:
        """Parse a ``/format`` response body.

        Unknown status strings are kept as plain strings so newer server
        versions do not break the client.

        Raises:
            ValueError: If the body is not a JSON object.
        """
        if not isinstance(data, dict):
            raise ValueError("Format response must be a JSON object")

        raw_status = data.get("status", "")
        try:
            status: FormatStatus | str = FormatStatus(raw_status)
        except ValueError:
            status = str(raw_status)

        formatted = data.get("formattedFile")
        error = data.get("errorMessage")
        return cls(
            status=status,
            formatted_file=formatted if isinstance(formatted, str) else None,
            error_message=error if isinstance(error, str) else None,
        )

    @property
    def status_name(self) -> str:
        """Status as reported on the wire."""
        return self.status.value if isinstance(self.status, FormatStatus) else self.status
