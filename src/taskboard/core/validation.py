"""Field validation for task create and update requests.

All checks raise :class:`TaskValidationError`, which carries a human-readable
message, a machine-readable code and any numeric context the client needs
(lengths, thresholds).  Callers translate it into a 400 response.
"""

from __future__ import annotations

import math
from typing import Any

MAX_TITLE_LENGTH = 500

# 365 days in milliseconds
MAX_DUE_DATE_AHEAD_MS = 365 * 24 * 60 * 60 * 1000

INVALID_TITLE_TYPE = "INVALID_TITLE_TYPE"
EMPTY_TITLE = "EMPTY_TITLE"
TITLE_TOO_LONG = "TITLE_TOO_LONG"
INVALID_DUE_DATE_TYPE = "INVALID_DUE_DATE_TYPE"
DUE_DATE_IN_PAST = "DUE_DATE_IN_PAST"
DUE_DATE_TOO_FAR = "DUE_DATE_TOO_FAR"
INVALID_COMPLETED_TYPE = "INVALID_COMPLETED_TYPE"


class TaskValidationError(Exception):
    """Raised when a request field fails a business rule."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        """Render as the client-facing error body."""
        body: dict = {"error": self.message, "code": self.code}
        body.update(self.context)
        return body


def is_finite_number(value: object) -> bool:
    """Return ``True`` for int/float values that are not bool, NaN or infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def normalize_title(value: object) -> str:
    """Validate a title and return it trimmed."""
    if value is None or not isinstance(value, str):
        raise TaskValidationError(
            INVALID_TITLE_TYPE, "Title is required and must be a string"
        )

    title = value.strip()
    if not title:
        raise TaskValidationError(
            EMPTY_TITLE, "Title cannot be empty. Please provide a non-empty task title."
        )

    if len(title) > MAX_TITLE_LENGTH:
        raise TaskValidationError(
            TITLE_TOO_LONG,
            f"Title is too long. Maximum length is {MAX_TITLE_LENGTH} characters. "
            f"Current length: {len(title)}",
            maxLength=MAX_TITLE_LENGTH,
            currentLength=len(title),
        )

    return title


def _require_timestamp(value: object) -> int | float:
    if not is_finite_number(value):
        raise TaskValidationError(
            INVALID_DUE_DATE_TYPE, "dueDate must be a valid timestamp (number)"
        )
    return value  # type: ignore[return-value]


def validate_due_date_for_create(value: object, now_ms: int) -> int | float | None:
    """Check a due date on the create path.

    ``None`` means no deadline.  Otherwise the value must be a finite
    timestamp strictly after *now_ms* and at most one year ahead of it.
    """
    if value is None:
        return None

    due = _require_timestamp(value)

    if due <= now_ms:
        raise TaskValidationError(
            DUE_DATE_IN_PAST,
            "Due date must be in the future. Please select a future date and time.",
        )

    if due > now_ms + MAX_DUE_DATE_AHEAD_MS:
        raise TaskValidationError(
            DUE_DATE_TOO_FAR,
            "Due date cannot be more than 1 year in the future. "
            "Please select a date within the next year.",
        )

    return due


def validate_due_date_for_update(value: object) -> int | float | None:
    """Check a due date on the update path.

    Any finite timestamp is accepted, past ones included (the task then
    shows as overdue).  ``None`` clears the field.
    """
    if value is None:
        return None
    return _require_timestamp(value)


def validate_completed(value: object) -> bool:
    if not isinstance(value, bool):
        raise TaskValidationError(INVALID_COMPLETED_TYPE, "Completed must be a boolean")
    return value
