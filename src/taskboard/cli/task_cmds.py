"""Task commands: list, add, update, delete."""

from __future__ import annotations

from typing import NoReturn

import click

from taskboard.cli.helpers import format_task_line, json_envelope, output_error, output_result
from taskboard.cli.main import cli
from taskboard.core.config import Settings, data_file_for
from taskboard.core.tasks import VALID_FILTERS, filter_tasks
from taskboard.core.validation import TaskValidationError
from taskboard.storage.locks import LockTimeout
from taskboard.storage.operations import (
    TaskNotFoundError,
    create_task,
    delete_task,
    list_tasks,
    update_task,
)
from taskboard.storage.store import StorageError


def _fail_validation(exc: TaskValidationError, is_json: bool) -> NoReturn:
    output_error(exc.message, exc.code, is_json, **exc.context)


def _fail_storage(exc: Exception, is_json: bool) -> NoReturn:
    output_error(str(exc), "STORAGE_ERROR", is_json)


# ---------------------------------------------------------------------------
# taskboard list
# ---------------------------------------------------------------------------


@cli.command("list")
@click.option(
    "--filter",
    "which",
    type=click.Choice(VALID_FILTERS),
    default="all",
    show_default=True,
    help="Show all, only active, or only completed tasks.",
)
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.pass_obj
def list_cmd(settings: Settings, which: str, output_json: bool) -> None:
    """List tasks, newest first."""
    tasks = filter_tasks(list_tasks(data_file_for(settings)), which)

    if output_json:
        click.echo(json_envelope(True, data=tasks))
        return

    if not tasks:
        click.echo("No tasks.")
        return
    for task in tasks:
        click.echo(format_task_line(task))


# ---------------------------------------------------------------------------
# taskboard add
# ---------------------------------------------------------------------------


@cli.command("add")
@click.argument("title")
@click.option("--due", type=int, default=None, help="Due date as epoch milliseconds.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.pass_obj
def add_cmd(settings: Settings, title: str, due: int | None, output_json: bool) -> None:
    """Create a task."""
    try:
        task = create_task(data_file_for(settings), title, due)
    except TaskValidationError as exc:
        _fail_validation(exc, output_json)
    except (StorageError, LockTimeout) as exc:
        _fail_storage(exc, output_json)

    output_result(
        data=task,
        human_message=f"Created {task['id']}: {task['title']}",
        is_json=output_json,
    )


# ---------------------------------------------------------------------------
# taskboard update
# ---------------------------------------------------------------------------


@cli.command("update")
@click.argument("task_id")
@click.option("--title", default=None, help="New title.")
@click.option("--done/--not-done", "completed", default=None, help="Mark completed or active.")
@click.option("--due", type=int, default=None, help="New due date as epoch milliseconds.")
@click.option("--clear-due", is_flag=True, help="Remove the due date.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.pass_obj
def update_cmd(
    settings: Settings,
    task_id: str,
    title: str | None,
    completed: bool | None,
    due: int | None,
    clear_due: bool,
    output_json: bool,
) -> None:
    """Change a task's title, completion or due date."""
    if due is not None and clear_due:
        output_error("--due and --clear-due are mutually exclusive", "USAGE_ERROR", output_json)

    changes: dict = {}
    if title is not None:
        changes["title"] = title
    if completed is not None:
        changes["completed"] = completed
    if due is not None:
        changes["dueDate"] = due
    if clear_due:
        changes["dueDate"] = None

    if not changes:
        output_error("Nothing to update", "USAGE_ERROR", output_json)

    try:
        task = update_task(data_file_for(settings), task_id, changes)
    except TaskNotFoundError as exc:
        output_error(str(exc), "TASK_NOT_FOUND", output_json)
    except TaskValidationError as exc:
        _fail_validation(exc, output_json)
    except (StorageError, LockTimeout) as exc:
        _fail_storage(exc, output_json)

    output_result(data=task, human_message=format_task_line(task), is_json=output_json)


# ---------------------------------------------------------------------------
# taskboard delete
# ---------------------------------------------------------------------------


@cli.command("delete")
@click.argument("task_id")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.pass_obj
def delete_cmd(settings: Settings, task_id: str, output_json: bool) -> None:
    """Delete a task."""
    try:
        removed = delete_task(data_file_for(settings), task_id)
    except TaskNotFoundError as exc:
        output_error(str(exc), "TASK_NOT_FOUND", output_json)
    except (StorageError, LockTimeout) as exc:
        _fail_storage(exc, output_json)

    output_result(
        data=removed,
        human_message=f"Deleted {removed['id']}: {removed['title']}",
        is_json=output_json,
    )
