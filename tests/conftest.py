"""Shared test fixtures."""

from __future__ import annotations

import json
import time
from pathlib import Path

import pytest
from click.testing import CliRunner

from taskboard.core.ids import generate_task_id


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    """Return a not-yet-created data directory under tmp_path."""
    return tmp_path / "data"


@pytest.fixture()
def data_file(data_dir: Path) -> Path:
    """Return the test-mode task file path (directory not created)."""
    return data_dir / "tasks.test.json"


@pytest.fixture()
def make_task():
    """Factory fixture: build a well-formed task dict.

    Usage::

        task = make_task(title="Write report", completed=True)
    """

    def _make(**overrides) -> dict:
        task = {
            "id": generate_task_id(),
            "title": "Sample Task",
            "completed": False,
            "createdAt": int(time.time() * 1000),
        }
        task.update(overrides)
        return task

    return _make


@pytest.fixture()
def seed(data_file: Path):
    """Write raw records (or any JSON value) to the task file.

    Usage::

        seed([make_task(), make_task(completed=True)])
    """

    def _seed(records: object) -> None:
        data_file.parent.mkdir(parents=True, exist_ok=True)
        data_file.write_text(json.dumps(records, indent=2))

    return _seed


@pytest.fixture()
def read_file(data_file: Path):
    """Return the parsed contents of the task file."""

    def _read() -> object:
        return json.loads(data_file.read_text())

    return _read


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Return a Click CliRunner for invoking CLI commands."""
    return CliRunner()


@pytest.fixture()
def cli_env(data_dir: Path) -> dict[str, str]:
    """Return env dict pointing the CLI at the test task file."""
    return {"TASKBOARD_ENV": "test", "TASKBOARD_DATA_DIR": str(data_dir)}


@pytest.fixture()
def invoke(cli_runner: CliRunner, cli_env: dict[str, str]):
    """Return a helper that invokes CLI commands with the right environment.

    Usage::

        result = invoke("add", "My task")
    """
    from taskboard.cli.main import cli

    def _invoke(*args: str, **kwargs):
        return cli_runner.invoke(cli, list(args), env=cli_env, **kwargs)

    return _invoke


@pytest.fixture()
def invoke_json(invoke):
    """Like invoke, but appends --json and parses the response.

    Returns (parsed_dict, exit_code) tuple.
    """

    def _invoke_json(*args: str) -> tuple[dict, int]:
        result = invoke(*args, "--json")
        parsed = json.loads(result.output)
        return parsed, result.exit_code

    return _invoke_json


@pytest.fixture()
def create_task(invoke_json):
    """Factory fixture: create a task through the CLI and return it.

    Usage::

        task = create_task("My task")
    """

    def _create(title: str = "Test task", *extra_args: str) -> dict:
        parsed, code = invoke_json("add", title, *extra_args)
        assert code == 0, f"add failed: {parsed}"
        return parsed["data"]

    return _create
