"""Unit tests for CrossProcessLock."""

import threading
import time
from pathlib import Path

import pytest
from filelock import FileLock, Timeout

from ffmpeg_engine.domain.exceptions import LockTimeoutException
from ffmpeg_engine.services.process_lock import CrossProcessLock


class TestCrossProcessLock:
    """Tests for CrossProcessLock."""

    def test_creation_does_not_acquire(self, lock_name: str, lock_dir: Path) -> None:
        lock = CrossProcessLock(lock_name, lock_dir)
        assert not lock.is_locked
        assert lock.lock_file_path == lock_dir / f"{lock_name}.lock"

    def test_hold_releases_on_exit(self, lock_name: str, lock_dir: Path) -> None:
        lock = CrossProcessLock(lock_name, lock_dir)

        with lock.hold():
            assert lock.is_locked

        assert not lock.is_locked
        assert lock.acquire_count == 1
        assert lock.release_count == 1

    def test_hold_releases_on_error(self, lock_name: str, lock_dir: Path) -> None:
        lock = CrossProcessLock(lock_name, lock_dir)

        with pytest.raises(RuntimeError):
            with lock.hold():
                raise RuntimeError("boom")

        assert not lock.is_locked
        assert lock.release_count == 1

    def test_excludes_independent_lock_handles(self, lock_name: str, lock_dir: Path) -> None:
        """Another handle on the same name, as another process would use, cannot acquire."""
        lock = CrossProcessLock(lock_name, lock_dir)
        other = FileLock(str(lock_dir / f"{lock_name}.lock"))

        with lock.hold():
            with pytest.raises(Timeout):
                other.acquire(timeout=0.1)

        other.acquire(timeout=0.1)
        other.release()

    def test_timeout(self, lock_name: str, lock_dir: Path) -> None:
        holder = CrossProcessLock(lock_name, lock_dir)
        waiter = CrossProcessLock(lock_name, lock_dir)

        with holder.hold():
            with pytest.raises(LockTimeoutException) as exc_info:
                waiter.acquire(timeout=0.1)

        assert exc_info.value.lock_name == lock_name
        assert waiter.acquire_count == 0

    def test_threads_sharing_one_lock_are_serialized(self, lock_name: str, lock_dir: Path) -> None:
        lock = CrossProcessLock(lock_name, lock_dir)
        active = 0
        max_active = 0
        counter_guard = threading.Lock()

        def work():
            nonlocal active, max_active
            with lock.hold():
                with counter_guard:
                    active += 1
                    max_active = max(max_active, active)
                time.sleep(0.02)
                with counter_guard:
                    active -= 1

        threads = [threading.Thread(target=work) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert max_active == 1
        assert lock.acquire_count == 5
        assert lock.release_count == 5

    def test_close_releases_held_lock(self, lock_name: str, lock_dir: Path) -> None:
        lock = CrossProcessLock(lock_name, lock_dir)
        lock.acquire()

        lock.close()

        assert not lock.is_locked
        other = FileLock(str(lock.lock_file_path))
        other.acquire(timeout=0.1)
        other.release()

    def test_close_twice(self, lock_name: str, lock_dir: Path) -> None:
        lock = CrossProcessLock(lock_name, lock_dir)
        with lock.hold():
            pass
        lock.close()
        lock.close()
        assert not lock.is_locked
