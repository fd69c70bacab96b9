"""Cross-process lock serializing CLI invocations.

Uses an exclusive flock() on the lock file, held for the whole critical
section. The kernel drops the lock when its holder exits, so a lock file
left behind by a crashed invocation never blocks later ones.
"""

import contextlib
import fcntl
import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from csharpierd.domain.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


class LockManager:
    """Exclusive lock on a marker file holding the owner's PID."""

    def __init__(self, path: Path, timeout: float = 30.0, poll_interval: float = 0.1):
        """Initialize lock manager.

        Args:
            path: Path to the lock file
            timeout: Seconds hold() waits before giving up
            poll_interval: Seconds between acquisition attempts
        """
        self.path = path
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._fd: int | None = None

    @property
    def is_held(self) -> bool:
        """Whether this manager currently holds the lock."""
        return self._fd is not None

    def acquire(self) -> bool:
        """Try to take the lock without blocking.

        Returns:
            True if the lock is now held by this manager, False if another
            holder has it
        """
        if self._fd is not None:
            return True

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            return False
        except OSError:
            os.close(fd)
            raise

        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode("ascii"))
        self._fd = fd
        return True

    def release(self) -> None:
        """Release the lock. No-op if not held.

        The file itself is kept: unlinking it would let a waiter lock the
        orphaned inode while a newcomer locks a fresh file.
        """
        if self._fd is None:
            return

        fd, self._fd = self._fd, None
        with contextlib.suppress(OSError):
            os.ftruncate(fd, 0)
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Hold the lock for the duration of the block.

        Raises:
            LockTimeoutError: If the lock is not acquired within the timeout
        """
        deadline = time.monotonic() + self.timeout
        waited = False
        while not self.acquire():
            if time.monotonic() >= deadline:
                holder = self.holder_pid()
                raise LockTimeoutError(
                    f"Timed out after {self.timeout:.1f}s waiting for lock {self.path}"
                    + (f" (held by PID {holder})" if holder else ""),
                    hint="Another csharpierd invocation may be stuck; "
                    "check its process or run 'csharpierd --stop'",
                )
            if not waited:
                logger.info(f"Waiting for lock {self.path}...")
                waited = True
            time.sleep(self.poll_interval)

        try:
            yield
        finally:
            self.release()

    def holder_pid(self) -> int | None:
        """PID recorded in the lock file, if any."""
        try:
            content = self.path.read_text(encoding="ascii").strip()
            return int(content) if content else None
        except (OSError, ValueError):
            return None
