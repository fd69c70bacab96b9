"""State file I/O for the server descriptor.

The state file records which formatting server the daemon believes is
running, so later CLI invocations can reuse it instead of spawning another.
Reading never fails: a missing or corrupt file simply means no known server.
"""

import json
import logging
from pathlib import Path

from csharpierd.domain.entities import ServerDescriptor

logger = logging.getLogger(__name__)


class StateStore:
    """JSON-file backed store for the singleton ServerDescriptor."""

    def __init__(self, path: Path):
        """Initialize the store.

        Args:
            path: Path to the state file
        """
        self.path = path

    def load(self) -> ServerDescriptor | None:
        """Load the persisted descriptor.

        Returns:
            The descriptor, or None if the file is missing or unreadable
        """
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return ServerDescriptor.from_dict(data)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            logger.debug(f"Ignoring unreadable state file {self.path}: {e}")
            return None

    def save(self, descriptor: ServerDescriptor) -> None:
        """Overwrite the state file with the descriptor.

        Args:
            descriptor: Descriptor to persist
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        with self.path.open("w", encoding="utf-8") as f:
            json.dump(descriptor.to_dict(), f, indent=2)
            f.write("\n")

    def clear(self) -> None:
        """Delete the state file if it exists."""
        self.path.unlink(missing_ok=True)
