"""
A host-wide mutual-exclusion lock shared by every engine instance.

The lock is an OS advisory lock on a file whose path is derived from a fixed
name, so two engines in two unrelated processes serialize on it just like two
threads in the same process do.
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from filelock import FileLock, Timeout
from loguru import logger

from ..config.common import LOCK_DIR, LOCK_NAME
from ..domain.exceptions import LockTimeoutException


class CrossProcessLock:
    """
    Named lock visible to all processes on the host.

    Creating the object does not acquire anything. Use `hold()` so every
    acquisition is paired with exactly one release, on error paths too.
    """

    def __init__(self, name: str = LOCK_NAME, lock_dir: Optional[Path] = None):
        self.name = name
        self.lock_dir = Path(lock_dir) if lock_dir is not None else LOCK_DIR
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        self.lock_file_path = self.lock_dir / f"{name}.lock"
        # thread_local keeps threads sharing this object from re-entering each other's hold.
        self._lock = FileLock(str(self.lock_file_path), thread_local=True)
        self._closed = False
        self.acquire_count = 0
        self.release_count = 0

    @property
    def is_locked(self) -> bool:
        """True while the calling thread holds the lock through this object."""
        return self._lock.is_locked

    def acquire(self, timeout: Optional[float] = None) -> None:
        """
        Blocks until the lock is held.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely.

        Raises:
            LockTimeoutException: If `timeout` elapsed first.
        """
        try:
            self._lock.acquire(timeout=-1 if timeout is None else timeout)
        except Timeout as e:
            raise LockTimeoutException(self.name, timeout) from e
        self.acquire_count += 1
        logger.trace(f"Acquired lock '{self.name}' ({self.lock_file_path}).")

    def release(self) -> None:
        # Counted before releasing, while still inside the critical section.
        self.release_count += 1
        self._lock.release()
        logger.trace(f"Released lock '{self.name}'.")

    @contextmanager
    def hold(self, timeout: Optional[float] = None) -> Iterator["CrossProcessLock"]:
        """Scoped acquisition: the lock is released whenever the block exits."""
        self.acquire(timeout)
        try:
            yield self
        finally:
            self.release()

    def close(self) -> None:
        """
        Releases the primitive. The lock file stays on disk since other
        processes may be waiting on it.
        """
        if self._closed:
            return
        if self._lock.is_locked:
            self._lock.release(force=True)
        self._closed = True
