"""``taskboard serve`` and ``taskboard cleanup`` commands."""

from __future__ import annotations

import errno
import socket

import click

from taskboard.cli.helpers import json_envelope, output_error
from taskboard.cli.main import cli
from taskboard.core.config import Settings, data_file_for
from taskboard.logs import LogBuffer, configure_logging
from taskboard.storage.store import cleanup_data_file


def _find_free_port(host: str, near: int) -> int | None:
    """Return an available port close to *near*, or ``None`` on failure."""
    for candidate in range(near + 1, near + 20):
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind((host, candidate))
                return candidate
        except OSError:
            continue
    return None


@cli.command("serve")
@click.option("--host", default=None, help="Host to bind to. Defaults to TASKBOARD_HOST.")
@click.option("--port", default=None, type=int, help="Port to bind to. Defaults to TASKBOARD_PORT.")
@click.pass_obj
def serve_cmd(settings: Settings, host: str | None, port: int | None) -> None:
    """Run the task API and browser client until interrupted.

    The task file is re-sanitized once before the server starts accepting
    requests.
    """
    host = host or settings["host"]
    port = port if port is not None else settings["port"]
    data_file = data_file_for(settings)

    log_buffer = LogBuffer(settings["log_capacity"])
    logger = configure_logging(log_buffer)

    cleanup_data_file(data_file)

    from taskboard.dashboard.server import create_server

    try:
        server = create_server(
            data_file,
            host,
            port,
            log_buffer=log_buffer,
            cors_origin=settings["cors_origin"],
            qa_report=settings["qa_report"],
        )
    except OSError as exc:
        if exc.errno == errno.EADDRINUSE:
            alt = _find_free_port(host, port)
            hint = f"  taskboard serve --port {alt}" if alt else "  taskboard serve --port <PORT>"
            output_error(
                f"Port {port} is already in use.\nStart on a free port instead:\n\n{hint}",
                "PORT_IN_USE",
                False,
            )
        output_error(str(exc), "BIND_ERROR", False)

    url = f"http://{host}:{port}/"
    click.echo("=" * 50)
    click.echo(f"Taskboard server running on {url}")
    click.echo(f"Task file: {data_file} ({settings['mode']})")
    click.echo(f"Server console at {url}console")
    click.echo("Press Ctrl+C to stop.")
    click.echo("=" * 50)
    logger.info("Server started successfully")
    logger.info("Server running on %s", url)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


@cli.command("cleanup")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.pass_obj
def cleanup_cmd(settings: Settings, output_json: bool) -> None:
    """Re-save the task file, dropping malformed records."""
    data_file = data_file_for(settings)
    kept = cleanup_data_file(data_file)
    if output_json:
        click.echo(json_envelope(True, data={"file": str(data_file), "tasks": kept}))
    else:
        click.echo(f"Sanitized {kept} tasks in {data_file}")
