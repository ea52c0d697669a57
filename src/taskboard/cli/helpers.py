"""Shared CLI helpers and output utilities."""

from __future__ import annotations

import json
from datetime import datetime
from typing import NoReturn

import click

from taskboard.core.tasks import Task, format_remaining, is_overdue


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def json_envelope(ok: bool, *, data: object = None, error: object = None) -> str:
    """Build a structured JSON output envelope."""
    result: dict = {"ok": ok}
    if data is not None:
        result["data"] = data
    if error is not None:
        result["error"] = error
    return json.dumps(result, sort_keys=True, indent=2) + "\n"


def json_error_obj(code: str, message: str, **extra: object) -> dict:
    """Build an error object for the JSON envelope."""
    obj: dict = {"code": code, "message": message}
    obj.update(extra)
    return obj


def output_error(
    message: str, code: str, is_json: bool, exit_code: int = 1, **extra: object
) -> NoReturn:
    """Print error and exit. JSON errors go to stdout; human errors to stderr."""
    if is_json:
        click.echo(json_envelope(False, error=json_error_obj(code, message, **extra)))
    else:
        click.echo(f"Error: {message}", err=True)
    raise SystemExit(exit_code)


def output_result(
    *,
    data: object,
    human_message: str,
    is_json: bool,
) -> None:
    """Print success result in the appropriate format."""
    if is_json:
        click.echo(json_envelope(True, data=data))
    else:
        click.echo(human_message)


# ---------------------------------------------------------------------------
# Task formatting
# ---------------------------------------------------------------------------


def format_due(due: int | float) -> str:
    """Local date and time for *due*, or the raw milliseconds if out of range."""
    try:
        return datetime.fromtimestamp(due / 1000).strftime("%Y-%m-%d %H:%M")
    except (OverflowError, OSError, ValueError):
        return f"{due}ms"


def format_task_line(task: Task, now: int | None = None) -> str:
    """One-line human rendering: ``[x] title  (due info)  id``."""
    mark = "x" if task["completed"] else " "
    line = f"[{mark}] {task['title']}"
    due = task.get("dueDate")
    if due is not None:
        when = format_due(due)
        if is_overdue(task, now):
            line += f"  (OVERDUE, due {when})"
        elif not task["completed"]:
            line += f"  ({format_remaining(due, now)}, due {when})"
        else:
            line += f"  (due {when})"
    return f"{line}  {task['id']}"
