"""Bounded in-memory log buffer and logging setup.

The HTTP server exposes recent log lines at ``/logs``.  Those lines come
from a :class:`LogBuffer` created at startup and passed to the server, fed
by a :class:`LogBufferHandler` attached to the ``taskboard`` logger.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import TypedDict

DEFAULT_CAPACITY = 1000

ROOT_LOGGER_NAME = "taskboard"


class LogEntry(TypedDict):
    timestamp: str
    level: str
    message: str


def _level_name(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warning"
    return "info"


class LogBuffer:
    """Thread-safe ring buffer of the most recent log entries.

    Starts empty.  Once *capacity* entries are held, each append evicts
    the oldest one.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def append(self, level: str, message: str, timestamp: str | None = None) -> LogEntry:
        entry: LogEntry = {
            "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
            "level": level,
            "message": message,
        }
        with self._lock:
            self._entries.append(entry)
        return entry

    def entries(self) -> list[LogEntry]:
        """Return a copy of the buffered entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class LogBufferHandler(logging.Handler):
    """Logging handler that mirrors records into a :class:`LogBuffer`."""

    def __init__(self, buffer: LogBuffer, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
            timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
            self.buffer.append(_level_name(record.levelno), message, timestamp)
        except Exception:
            self.handleError(record)


def configure_logging(buffer: LogBuffer | None = None, level: int = logging.INFO) -> logging.Logger:
    """Set up stderr logging and, if given, mirror ``taskboard.*`` into *buffer*.

    Safe to call more than once: earlier buffer handlers are replaced.
    """
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, LogBufferHandler):
            logger.removeHandler(handler)
    if buffer is not None:
        logger.addHandler(LogBufferHandler(buffer, level))
    return logger
