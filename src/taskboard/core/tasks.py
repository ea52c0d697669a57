"""Task records: construction, ordering, filtering and statistics."""

from __future__ import annotations

import json
import time
from typing import TypedDict

from taskboard.core.ids import generate_task_id

VALID_FILTERS: tuple[str, ...] = ("all", "active", "completed")


class _TaskRequired(TypedDict):
    id: str
    title: str
    completed: bool
    createdAt: int


class Task(_TaskRequired, total=False):
    dueDate: int | float


class TaskStats(TypedDict):
    total: int
    active: int
    completed: int


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def build_task(
    title: str, *, due_date: int | float | None = None, created_at: int | None = None
) -> Task:
    """Return a fresh, not-yet-persisted task.

    *title* must already be normalized.  ``dueDate`` is only present when a
    due date was supplied.
    """
    task: Task = {
        "id": generate_task_id(),
        "title": title,
        "completed": False,
        "createdAt": created_at if created_at is not None else now_ms(),
    }
    if due_date is not None:
        task["dueDate"] = due_date
    return task


def sort_newest_first(tasks: list[Task]) -> list[Task]:
    """Sort by ``createdAt`` descending; equal timestamps keep load order."""
    return sorted(tasks, key=lambda t: t["createdAt"], reverse=True)


def find_task_index(tasks: list[Task], task_id: str) -> int:
    """Return the position of *task_id* in *tasks*, or -1."""
    for i, task in enumerate(tasks):
        if task["id"] == task_id:
            return i
    return -1


def is_overdue(task: Task, now: int | None = None) -> bool:
    """A task is overdue when it has a past due date and is not completed."""
    due = task.get("dueDate")
    if due is None or task["completed"]:
        return False
    if now is None:
        now = now_ms()
    return now > due


def filter_tasks(tasks: list[Task], which: str) -> list[Task]:
    """Apply a client-style filter: ``all``, ``active`` or ``completed``."""
    if which == "active":
        return [t for t in tasks if not t["completed"]]
    if which == "completed":
        return [t for t in tasks if t["completed"]]
    if which == "all":
        return list(tasks)
    raise ValueError(f"Unknown filter: '{which}'. Valid: {', '.join(VALID_FILTERS)}")


def compute_stats(tasks: list[Task]) -> TaskStats:
    total = len(tasks)
    completed = sum(1 for t in tasks if t["completed"])
    return {"total": total, "active": total - completed, "completed": completed}


def format_remaining(due_date: int | float, now: int | None = None) -> str:
    """Format the time left until *due_date* as a short human string."""
    if now is None:
        now = now_ms()
    diff = due_date - now
    if diff < 0:
        return "Overdue"

    seconds = int(diff // 1000)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h remaining"
    if hours > 0:
        return f"{hours}h {minutes % 60}m remaining"
    if minutes > 0:
        return f"{minutes}m remaining"
    return f"{seconds}s remaining"


def serialize_tasks(tasks: list[Task]) -> str:
    """Pretty-print a task collection as JSON with trailing newline."""
    return json.dumps(tasks, indent=2, ensure_ascii=False) + "\n"
