"""Tests for the data-file lock."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest
from filelock import FileLock, Timeout

from taskboard.storage.locks import LockTimeout, data_file_lock, lock_path_for


class TestLockPath:
    def test_lock_sits_beside_data_file(self, tmp_path: Path) -> None:
        assert lock_path_for(tmp_path / "tasks.json") == tmp_path / "tasks.json.lock"


class TestDataFileLock:
    """data_file_lock() holds an exclusive lock for the block."""

    def test_held_inside_block(self, tmp_path: Path) -> None:
        data_file = tmp_path / "tasks.json"
        lock_file = lock_path_for(data_file)

        with data_file_lock(data_file):
            assert lock_file.exists()
            contender = FileLock(lock_file, timeout=0)
            with pytest.raises(Timeout):
                contender.acquire()

        contender = FileLock(lock_file, timeout=0)
        contender.acquire()
        contender.release()

    def test_released_on_exception(self, tmp_path: Path) -> None:
        data_file = tmp_path / "tasks.json"
        with pytest.raises(RuntimeError, match="boom"):
            with data_file_lock(data_file):
                raise RuntimeError("boom")

        with data_file_lock(data_file, timeout=0.1):
            pass

    def test_timeout(self, tmp_path: Path) -> None:
        data_file = tmp_path / "tasks.json"
        blocker = FileLock(lock_path_for(data_file))
        blocker.acquire()
        try:
            with pytest.raises(LockTimeout, match="Could not acquire lock on 'tasks.json'"):
                with data_file_lock(data_file, timeout=0.1):
                    pass  # pragma: no cover
        finally:
            blocker.release()

    def test_second_holder_waits(self, tmp_path: Path) -> None:
        """A thread blocks until the first holder leaves the block."""
        data_file = tmp_path / "tasks.json"
        order: list[str] = []
        entered = threading.Event()

        def holder() -> None:
            with data_file_lock(data_file):
                entered.set()
                time.sleep(0.2)
                order.append("first")

        thread = threading.Thread(target=holder)
        thread.start()
        entered.wait(timeout=5)

        with data_file_lock(data_file, timeout=5):
            order.append("second")

        thread.join(timeout=5)
        assert order == ["first", "second"]
