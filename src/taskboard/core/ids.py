"""Task ID generation and validation."""

from __future__ import annotations

import re

from ulid import ULID

# Crockford Base32 alphabet: 0-9 A-Z excluding I, L, O, U
_CROCKFORD_B32_RE = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$", re.IGNORECASE)

TASK_ID_PREFIX = "task"


def generate_task_id() -> str:
    """Generate a new task ID with the task_ prefix."""
    return f"{TASK_ID_PREFIX}_{ULID()}"


def is_generated_task_id(id_str: str) -> bool:
    """Return ``True`` if *id_str* looks like an ID from :func:`generate_task_id`.

    Stored IDs are opaque, so this is informational only: records written by
    other tools may carry any non-empty string and are still valid tasks.
    """
    if not isinstance(id_str, str):
        return False

    parts = id_str.split("_", maxsplit=1)
    if len(parts) != 2:
        return False

    prefix, ulid_part = parts
    if prefix != TASK_ID_PREFIX:
        return False

    return bool(_CROCKFORD_B32_RE.match(ulid_part))
