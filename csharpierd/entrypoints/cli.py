"""csharpierd CLI entrypoint.

Formats C# source read from stdin through a long-lived CSharpier server,
starting the server on first use and reusing it afterwards.
"""

from __future__ import annotations

import functools
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from csharpierd.domain.config import DaemonConfig

from csharpierd.core.errors import (
    CsharpierdCliError,
    empty_input_error,
    missing_file_name_error,
    stop_failed_error,
)
from csharpierd.domain.exceptions import CsharpierdError
from csharpierd.version import __version__

logger = logging.getLogger(__name__)


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    Converts domain exceptions into CsharpierdCliError so click prints them
    to stderr and exits non-zero. click exceptions (including usage errors)
    propagate unchanged.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except click.ClickException:
                raise
            except CsharpierdError as e:
                raise CsharpierdCliError(e.message, hint=e.hint) from e
            except (OSError, ValueError) as e:
                raise CsharpierdCliError(
                    str(e),
                    hint="Run with --verbose for more details",
                ) from e
            except Exception as e:
                logger.debug("Unexpected error", exc_info=True)
                raise CsharpierdCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr; stdout carries only formatted output."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_config(config_path: Path | None) -> DaemonConfig:
    from csharpierd.shared.config_io import load_config

    return load_config(config_path)


def _show_status(config: DaemonConfig) -> None:
    from csharpierd.adapters.factory import DaemonFactory

    status = DaemonFactory(config).create_orchestrator().status()

    if status["running"]:
        click.echo(f"✓ CSharpier server is running (PID {status['pid']})")
    else:
        click.echo("✗ CSharpier server is not running")

    click.echo("\nDetails:")
    click.echo(f"  Status: {status['status']}")
    click.echo(f"  Port: {status['port']}")
    if status["last_access"] is not None:
        last_access = datetime.fromtimestamp(status["last_access"] / 1000)
        click.echo(f"  Last access: {last_access:%Y-%m-%d %H:%M:%S}")
        click.echo(f"  Idle: {status['idle_seconds']}s (timeout {int(config.idle_timeout)}s)")
    click.echo(f"  State file: {status['state_file']}")
    click.echo(f"  Log file: {status['log_file']}")

    if status["status"] != "running":
        click.echo(f"\n{status['message']}")


def _start_server(config: DaemonConfig) -> None:
    from csharpierd.adapters.factory import DaemonFactory

    state = DaemonFactory(config).create_orchestrator().ensure_server()
    click.echo(f"✓ CSharpier server is running (PID {state.pid}, port {state.port})")


def _stop_server(config: DaemonConfig) -> None:
    from csharpierd.adapters.factory import DaemonFactory

    orchestrator = DaemonFactory(config).create_orchestrator()
    state = orchestrator.stop_server()
    if state is None:
        click.echo("CSharpier server is not running")
        return

    if orchestrator.health.is_alive(state.pid):
        stop_failed_error(state.pid)
    click.echo(f"✓ CSharpier server stopped (PID {state.pid})")


def _format_stdin(config: DaemonConfig, file_name: str) -> None:
    from csharpierd.adapters.factory import DaemonFactory

    contents = sys.stdin.read()
    if not contents:
        empty_input_error()

    client = DaemonFactory(config).create_format_client()
    formatted = client.format_code(file_name, contents)
    click.echo(formatted, nl=False)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="csharpierd")
@click.argument("filename", required=False)
@click.option("--start", "action", flag_value="start", help="Start the server if needed and exit.")
@click.option("--status", "action", flag_value="status", help="Show server status.")
@click.option("--stop", "action", flag_value="stop", help="Stop the server.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/csharpierd/config.toml).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log server lifecycle events to stderr.")
@handle_cli_errors("csharpierd")
def cli(
    filename: str | None,
    action: str | None,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Format C# code from stdin using a persistent CSharpier server.

    \b
    Usage:
      csharpierd <filename> < input.cs   Format stdin, print result
      csharpierd --start                 Start the server ahead of time
      csharpierd --status                Show server status
      csharpierd --stop                  Stop the server

    The server is started on first use and stopped by the first invocation
    after it has been idle for an hour.
    """
    configure_logging(verbose)
    config = _load_config(config_path)

    if action == "status":
        _show_status(config)
    elif action == "start":
        _start_server(config)
    elif action == "stop":
        _stop_server(config)
    else:
        if not filename:
            missing_file_name_error()
        _format_stdin(config, filename)


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli()
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
