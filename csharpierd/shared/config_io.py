"""Configuration I/O utilities for reading TOML config files.

This module handles deserialization of DaemonConfig from TOML format.
"""

import os
import tomllib  # Built-in Python 3.11+
from pathlib import Path
from typing import Any

from csharpierd.domain.config import DaemonConfig

# TOML section -> {toml key: DaemonConfig field}
_SECTIONS: dict[str, dict[str, str]] = {
    "server": {
        "port": "port",
        "command": "server_command",
        "log_file": "log_file",
    },
    "paths": {
        "state_file": "state_file",
        "lock_file": "lock_file",
    },
    "timeouts": {
        "idle_timeout": "idle_timeout",
        "startup_poll_interval": "startup_poll_interval",
        "startup_poll_attempts": "startup_poll_attempts",
        "kill_grace_period": "kill_grace_period",
        "health_check_timeout": "health_check_timeout",
        "readiness_check_timeout": "readiness_check_timeout",
        "request_timeout": "request_timeout",
        "lock_timeout": "lock_timeout",
        "lock_poll_interval": "lock_poll_interval",
    },
}


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    Respects $XDG_CONFIG_HOME, falling back to ~/.config.

    Returns:
        Path to the global config file (may not exist)
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        return Path(xdg_config) / "csharpierd" / "config.toml"
    return Path.home() / ".config" / "csharpierd" / "config.toml"


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to config.toml file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def config_data_to_daemon_config(data: dict[str, Any]) -> DaemonConfig:
    """Convert raw config data dictionary to DaemonConfig.

    Args:
        data: Dictionary with config sections

    Returns:
        DaemonConfig instance

    Raises:
        ValueError: If a section or key is unknown or a value is invalid
    """
    kwargs: dict[str, Any] = {}

    for section, values in data.items():
        if section not in _SECTIONS:
            raise ValueError(f"Unknown config section: [{section}]")
        if not isinstance(values, dict):
            raise ValueError(f"Config section [{section}] must be a table")

        fields = _SECTIONS[section]
        for key, value in values.items():
            if key not in fields:
                raise ValueError(f"Unknown config key: {section}.{key}")
            kwargs[fields[key]] = value

    try:
        return DaemonConfig(**kwargs)
    except TypeError as e:
        # Wrong value types (e.g. a string port) surface as comparison errors
        raise ValueError(f"Invalid config value: {e}") from e


def load_config(path: Path | None = None) -> DaemonConfig:
    """Load configuration, falling back to built-in defaults.

    An explicitly given path must exist; the global config file is optional.

    Args:
        path: Config file to read (default: global config path)

    Returns:
        Parsed DaemonConfig instance

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ValueError: If the config file is malformed
    """
    if path is None:
        path = get_global_config_path()
        if not path.exists():
            return DaemonConfig()

    data = load_config_data(path)
    return config_data_to_daemon_config(data)
