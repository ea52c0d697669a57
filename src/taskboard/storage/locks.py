"""Advisory file lock serializing read-modify-write cycles on the task file."""

from __future__ import annotations

import contextlib
from collections.abc import Generator
from pathlib import Path

from filelock import FileLock, Timeout

DEFAULT_LOCK_TIMEOUT = 10


class LockTimeout(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""


def lock_path_for(data_file: Path) -> Path:
    """Return the lock file guarding *data_file* (``<name>.lock`` beside it)."""
    return data_file.with_name(f"{data_file.name}.lock")


@contextlib.contextmanager
def data_file_lock(
    data_file: Path,
    timeout: float = DEFAULT_LOCK_TIMEOUT,
) -> Generator[None, None, None]:
    """Hold the lock for *data_file* for the duration of the block.

    The containing directory must already exist.

    Raises:
        LockTimeout: If the lock cannot be acquired within *timeout* seconds.
    """
    lock = FileLock(lock_path_for(data_file), timeout=timeout)
    try:
        lock.acquire()
    except Timeout:
        raise LockTimeout(
            f"Could not acquire lock on '{data_file.name}' within {timeout}s"
        ) from None
    try:
        yield
    finally:
        lock.release()
