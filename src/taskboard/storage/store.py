"""Load and save the task collection as a single JSON array file.

Loading is lenient: malformed records are skipped and an unreadable file
reads as an empty collection, so a bad historical record never blocks the
server.  Saving is strict: any malformed record aborts the write, so bad
data is never persisted.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from taskboard.core.tasks import Task, serialize_tasks
from taskboard.core.validation import is_finite_number
from taskboard.storage.fs import atomic_write, ensure_data_dir

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the task collection cannot be persisted."""


def _sanitize(raw: dict, title: str) -> Task:
    task: Task = {
        "id": raw["id"],
        "title": title,
        "completed": raw["completed"],
        "createdAt": raw["createdAt"],
    }
    if is_finite_number(raw.get("dueDate")):
        task["dueDate"] = raw["dueDate"]
    return task


def _has_required_shape(item: object) -> bool:
    return (
        isinstance(item, dict)
        and isinstance(item.get("id"), str)
        and isinstance(item.get("title"), str)
        and isinstance(item.get("completed"), bool)
        and is_finite_number(item.get("createdAt"))
    )


def load_tasks(data_file: Path) -> list[Task]:
    """Read the task collection, dropping records that fail shape checks.

    Never raises: read, decode and parse failures (including nesting too
    deep for the JSON decoder) are logged and yield ``[]``.
    """
    try:
        ensure_data_dir(data_file)
        if not data_file.exists():
            return []

        text = data_file.read_text(encoding="utf-8")
        if not text.strip():
            return []

        parsed = json.loads(text)
    except Exception as exc:
        logger.error("Error loading tasks from %s: %s", data_file, exc)
        return []

    if not isinstance(parsed, list):
        logger.warning("Task file %s does not contain an array, treating as empty", data_file)
        return []

    tasks: list[Task] = []
    for item in parsed:
        if not _has_required_shape(item):
            logger.warning("Skipping invalid task: %r", item)
            continue
        title = item["title"].strip()
        if not title:
            logger.warning("Skipping task with empty title (ID: %s)", item["id"])
            continue
        tasks.append(_sanitize(item, title))
    return tasks


def _check_for_save(item: object) -> Task:
    if not isinstance(item, dict):
        raise ValueError("Invalid task object")
    task_id = item.get("id")
    if not isinstance(task_id, str) or not task_id:
        raise ValueError("Task must have a valid id")
    if not isinstance(item.get("title"), str):
        raise ValueError(f"Task {task_id} title must be a string")
    if not isinstance(item.get("completed"), bool):
        raise ValueError(f"Task {task_id} completed must be a boolean")
    if not is_finite_number(item.get("createdAt")):
        raise ValueError(f"Task {task_id} createdAt must be a number")

    title = item["title"].strip()
    if not title:
        raise ValueError(f"Task with id {task_id} has an empty title")
    return _sanitize(item, title)


def save_tasks(data_file: Path, tasks: list[Task]) -> None:
    """Validate every record and overwrite *data_file* with the collection.

    Raises:
        StorageError: On any validation, directory or write failure.
    """
    try:
        if not isinstance(tasks, (list, tuple)):
            raise ValueError("Tasks must be an array")
        sanitized = [_check_for_save(task) for task in tasks]
        ensure_data_dir(data_file)
        atomic_write(data_file, serialize_tasks(sanitized))
    except (OSError, ValueError) as exc:
        logger.error("Error saving tasks to %s: %s", data_file, exc)
        raise StorageError(f"Failed to save tasks: {exc}") from exc


def cleanup_data_file(data_file: Path) -> int:
    """Re-save the current collection so every record is re-sanitized.

    Run once at startup to drop records left malformed by earlier runs.
    Returns the number of tasks kept; failures are logged and return 0.
    """
    try:
        tasks = load_tasks(data_file)
        if not tasks:
            return 0
        save_tasks(data_file, tasks)
    except Exception as exc:
        logger.error("Error during data cleanup: %s", exc)
        return 0
    logger.info("Data cleanup: validated and sanitized %d tasks", len(tasks))
    return len(tasks)
