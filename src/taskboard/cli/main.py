"""CLI entry point."""

from __future__ import annotations

from pathlib import Path

import click

from taskboard import __version__
from taskboard.core.config import VALID_MODES, ConfigError, load_settings


@click.group()
@click.version_option(__version__, prog_name="taskboard")
@click.option(
    "--env",
    "mode",
    type=click.Choice(VALID_MODES),
    default=None,
    help="Environment mode selecting the task file (overrides TASKBOARD_ENV).",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the task file (overrides TASKBOARD_DATA_DIR).",
)
@click.pass_context
def cli(ctx: click.Context, mode: str | None, data_dir: Path | None) -> None:
    """Taskboard: file-backed task tracker with a JSON REST API."""
    try:
        settings = load_settings()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from None

    if mode is not None:
        settings["mode"] = mode
    if data_dir is not None:
        settings["data_dir"] = data_dir
    ctx.obj = settings


# ---------------------------------------------------------------------------
# Register command modules (must be after cli group is defined)
# ---------------------------------------------------------------------------
from taskboard.cli import task_cmds as _task_cmds  # noqa: E402, F401
from taskboard.cli import stats_cmds as _stats_cmds  # noqa: E402, F401
from taskboard.cli import serve_cmd as _serve_cmd  # noqa: E402, F401

if __name__ == "__main__":
    cli()
