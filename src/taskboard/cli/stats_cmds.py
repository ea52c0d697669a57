"""Statistics command."""

from __future__ import annotations

import click

from taskboard.cli.helpers import json_envelope
from taskboard.cli.main import cli
from taskboard.core.config import Settings, data_file_for
from taskboard.core.tasks import is_overdue, now_ms
from taskboard.storage.operations import list_tasks, task_stats


def _bar(count: int, total: int, width: int = 20) -> str:
    """Render a proportional bar."""
    if total == 0:
        return ""
    filled = round(count / total * width)
    return "#" * filled + "." * (width - filled)


@cli.command("stats")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.pass_obj
def stats_cmd(settings: Settings, output_json: bool) -> None:
    """Show total, active and completed task counts."""
    data_file = data_file_for(settings)
    stats = task_stats(data_file)

    if output_json:
        click.echo(json_envelope(True, data=stats))
        return

    now = now_ms()
    overdue = sum(1 for t in list_tasks(data_file) if is_overdue(t, now))
    total = stats["total"]

    click.echo("=== Taskboard Stats ===")
    click.echo("")
    click.echo(f"Tasks: {total} total")
    click.echo(f"  {'active':<12s} {stats['active']:>4d}  {_bar(stats['active'], total)}")
    click.echo(f"  {'completed':<12s} {stats['completed']:>4d}  {_bar(stats['completed'], total)}")
    if overdue:
        click.echo(f"  {'overdue':<12s} {overdue:>4d}")
