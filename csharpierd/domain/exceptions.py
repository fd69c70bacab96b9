"""Domain exceptions for csharpierd.

These exceptions represent failures of the server lifecycle and of format
requests. They should be caught at the application boundary (CLI) and
converted to user-facing error messages.
"""


class CsharpierdError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class LockTimeoutError(CsharpierdError):
    """Raised when another invocation holds the daemon lock for too long."""

    pass


class ServerStartError(CsharpierdError):
    """Raised when the formatting server cannot be started."""

    pass


class StartupTimeoutError(ServerStartError):
    """Raised when a spawned server never became responsive."""

    pass


class BackendError(CsharpierdError):
    """Raised when the formatting server rejects or fails a request.

    Attributes:
        status_code: HTTP status code, if the server answered at all.
    """

    def __init__(
        self, message: str, hint: str | None = None, status_code: int | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
