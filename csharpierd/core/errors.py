"""CLI error handling with actionable hints.

Provides consistent error formatting and common error factory functions
for the csharpierd CLI.
"""

from typing import NoReturn

import click


class CsharpierdCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise CsharpierdCliError(
            "Formatting server failed to start",
            hint="Check server logs at: /tmp/csharpierd-server.log",
        )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize the error with message and optional hint.

        Args:
            message: The primary error message.
            hint: Optional actionable suggestion for the user.
        """
        super().__init__(message)
        self.hint = hint

    def format_message(self) -> str:
        """Format the error message with hint if present.

        Returns:
            Formatted error message, with hint on a new line if provided.
        """
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


def missing_file_name_error() -> NoReturn:
    """Raise usage error when no file name was given.

    Raises:
        click.UsageError: Always.
    """
    raise click.UsageError(
        "Missing FILENAME. Usage: csharpierd <filename> < input.cs"
    )


def empty_input_error() -> NoReturn:
    """Raise usage error when nothing was piped on stdin.

    Raises:
        click.UsageError: Always.
    """
    raise click.UsageError("No input provided via stdin")


def stop_failed_error(pid: int) -> NoReturn:
    """Raise error when the server survived the stop sequence.

    Args:
        pid: PID of the server that is still alive.

    Raises:
        CsharpierdCliError: Always raises with a manual cleanup hint.
    """
    raise CsharpierdCliError(
        f"Server process {pid} is still running after SIGKILL",
        hint=f"Terminate it manually with 'kill -9 {pid}'",
    )
