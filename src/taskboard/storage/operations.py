"""Task lifecycle operations shared by the CLI and the HTTP server.

Every call reloads the whole collection from disk.  Mutations hold the
data-file lock across load, change and save, so two writers cannot both
start from the same snapshot and silently drop each other's change.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Generator
from pathlib import Path

from taskboard.core.tasks import (
    Task,
    TaskStats,
    build_task,
    compute_stats,
    find_task_index,
    now_ms,
    sort_newest_first,
)
from taskboard.core.validation import (
    normalize_title,
    validate_completed,
    validate_due_date_for_create,
    validate_due_date_for_update,
)
from taskboard.storage.fs import ensure_data_dir
from taskboard.storage.locks import data_file_lock
from taskboard.storage.store import StorageError, load_tasks, save_tasks

logger = logging.getLogger(__name__)


class TaskNotFoundError(Exception):
    """Raised when a task ID is not in the current collection."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} not found")
        self.task_id = task_id


@contextlib.contextmanager
def _write_cycle(data_file: Path) -> Generator[None, None, None]:
    """Create the data directory and hold the data-file lock.

    Directory or lock-file failures surface as :class:`StorageError`;
    ``LockTimeout`` passes through unchanged.
    """
    stack = contextlib.ExitStack()
    try:
        ensure_data_dir(data_file)
        stack.enter_context(data_file_lock(data_file))
    except OSError as exc:
        logger.error("Error preparing task file %s: %s", data_file, exc)
        raise StorageError(f"Failed to access task file: {exc}") from exc
    with stack:
        yield


def list_tasks(data_file: Path) -> list[Task]:
    """Return all tasks, most recently created first."""
    return sort_newest_first(load_tasks(data_file))


def task_stats(data_file: Path) -> TaskStats:
    return compute_stats(load_tasks(data_file))


def create_task(data_file: Path, title: object, due_date: object = None) -> Task:
    """Validate and persist a new task.

    Raises:
        TaskValidationError: If *title* or *due_date* breaks a create rule.
        StorageError: If the task file cannot be prepared or written.
    """
    now = now_ms()
    clean_title = normalize_title(title)
    clean_due = validate_due_date_for_create(due_date, now)

    task = build_task(clean_title, due_date=clean_due, created_at=now)

    with _write_cycle(data_file):
        tasks = load_tasks(data_file)
        tasks.append(task)
        save_tasks(data_file, tasks)

    logger.info("Created task %s: %r", task["id"], clean_title)
    return task


def update_task(data_file: Path, task_id: str, changes: dict) -> Task:
    """Apply a partial update to one task.

    Only keys present in *changes* are touched.  ``dueDate: None`` clears
    the due date.  Fields are checked in the order title, dueDate,
    completed; the first failure aborts without writing.

    Raises:
        TaskNotFoundError: If *task_id* is not in the collection.
        TaskValidationError: If a touched field breaks an update rule.
        StorageError: If the task file cannot be prepared or written.
    """
    with _write_cycle(data_file):
        tasks = load_tasks(data_file)
        index = find_task_index(tasks, task_id)
        if index == -1:
            raise TaskNotFoundError(task_id)

        updated: Task = dict(tasks[index])  # type: ignore[assignment]

        if "title" in changes:
            updated["title"] = normalize_title(changes["title"])

        if "dueDate" in changes:
            due = validate_due_date_for_update(changes["dueDate"])
            if due is None:
                updated.pop("dueDate", None)
            else:
                updated["dueDate"] = due

        if "completed" in changes:
            updated["completed"] = validate_completed(changes["completed"])

        tasks[index] = updated
        save_tasks(data_file, tasks)

    logger.info(
        "Updated task %s: %r (completed: %s)", task_id, updated["title"], updated["completed"]
    )
    return updated


def delete_task(data_file: Path, task_id: str) -> Task:
    """Remove a task and return it.

    Raises:
        TaskNotFoundError: If *task_id* is not in the collection.
        StorageError: If the task file cannot be prepared or written.
    """
    with _write_cycle(data_file):
        tasks = load_tasks(data_file)
        index = find_task_index(tasks, task_id)
        if index == -1:
            raise TaskNotFoundError(task_id)
        removed = tasks.pop(index)
        save_tasks(data_file, tasks)

    logger.info("Deleted task %s: %r", task_id, removed["title"])
    return removed
