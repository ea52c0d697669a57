"""Crash-safe replacement of the task file and data directory setup."""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path


def _sync_dir_entry(directory: Path) -> None:
    """Flush *directory* metadata so the new task file's name survives a crash.

    Platforms that refuse ``fsync`` on a directory handle are tolerated.
    """
    try:
        dir_fd = os.open(str(directory), os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


def _write_all(fd: int, payload: bytes) -> None:
    view = memoryview(payload)
    while view:
        view = view[os.write(fd, view) :]


def atomic_write(path: Path, content: str | bytes) -> None:
    """Swap *content* into *path* so readers never see a half-written task file.

    The bytes go to a sibling temp file that is flushed to disk before
    ``os.replace`` moves it over *path*.  On any failure the temp file is
    removed and the previous file is left as it was.

    Raises:
        FileNotFoundError: If the directory holding *path* is missing.
    """
    directory = path.parent
    if not directory.is_dir():
        raise FileNotFoundError(f"Parent directory does not exist: {directory}")

    payload = content if isinstance(content, bytes) else content.encode("utf-8")

    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{path.name}.", suffix=".tmp")
    try:
        try:
            _write_all(fd, payload)
            os.fsync(fd)
        finally:
            os.close(fd)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
    _sync_dir_entry(directory)


def ensure_data_dir(data_file: Path) -> Path:
    """Create the directory holding *data_file* if needed and return *data_file*."""
    data_file.parent.mkdir(parents=True, exist_ok=True)
    return data_file
