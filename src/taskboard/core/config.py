"""Runtime settings resolved from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import TypedDict

ENV_MODE = "TASKBOARD_ENV"
ENV_DATA_DIR = "TASKBOARD_DATA_DIR"
ENV_HOST = "TASKBOARD_HOST"
ENV_PORT = "TASKBOARD_PORT"
ENV_CORS_ORIGIN = "TASKBOARD_CORS_ORIGIN"
ENV_QA_REPORT = "TASKBOARD_QA_REPORT"
ENV_LOG_CAPACITY = "TASKBOARD_LOG_CAPACITY"

VALID_MODES: tuple[str, ...] = ("production", "test")

DATA_FILES: dict[str, str] = {
    "production": "tasks.json",
    "test": "tasks.test.json",
}

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_CORS_ORIGIN = "http://localhost:5173"
DEFAULT_LOG_CAPACITY = 1000


class ConfigError(Exception):
    """Raised when an environment setting is present but invalid."""


class Settings(TypedDict):
    mode: str
    data_dir: Path
    host: str
    port: int
    cors_origin: str
    qa_report: Path
    log_capacity: int


def _parse_positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got '{raw}'") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def validate_mode(mode: str) -> str:
    if mode not in VALID_MODES:
        raise ConfigError(f"Invalid mode: '{mode}'. Valid: {', '.join(VALID_MODES)}")
    return mode


def load_settings(environ: Mapping[str, str] | None = None, *, cwd: Path | None = None) -> Settings:
    """Build settings from *environ* (defaults to ``os.environ``).

    Empty variables count as unset.  Relative paths are left as given;
    defaults are anchored at *cwd* (defaults to the process cwd).
    """
    env = os.environ if environ is None else environ
    base = cwd or Path.cwd()

    def _get(name: str) -> str | None:
        value = env.get(name)
        return value if value else None

    mode = validate_mode(_get(ENV_MODE) or "production")

    data_dir_raw = _get(ENV_DATA_DIR)
    qa_raw = _get(ENV_QA_REPORT)
    port_raw = _get(ENV_PORT)
    capacity_raw = _get(ENV_LOG_CAPACITY)

    port = _parse_positive_int(ENV_PORT, port_raw) if port_raw else DEFAULT_PORT
    if port > 65535:
        raise ConfigError(f"{ENV_PORT} must be at most 65535, got {port}")

    return {
        "mode": mode,
        "data_dir": Path(data_dir_raw) if data_dir_raw else base / "data",
        "host": _get(ENV_HOST) or DEFAULT_HOST,
        "port": port,
        "cors_origin": _get(ENV_CORS_ORIGIN) or DEFAULT_CORS_ORIGIN,
        "qa_report": Path(qa_raw) if qa_raw else base / "QA_REPORT.md",
        "log_capacity": (
            _parse_positive_int(ENV_LOG_CAPACITY, capacity_raw)
            if capacity_raw
            else DEFAULT_LOG_CAPACITY
        ),
    }


def data_file_for(settings: Settings) -> Path:
    """Return the task file for the configured mode."""
    return settings["data_dir"] / DATA_FILES[settings["mode"]]
