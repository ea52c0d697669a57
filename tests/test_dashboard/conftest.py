"""Dashboard-specific fixtures."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import NamedTuple

import pytest

from taskboard.dashboard.server import create_server
from taskboard.logs import ROOT_LOGGER_NAME, LogBuffer, LogBufferHandler


class LiveServer(NamedTuple):
    base_url: str
    data_file: Path
    log_buffer: LogBuffer
    qa_report: Path


@pytest.fixture()
def live_server(data_file: Path, tmp_path: Path):
    """Start the task server on a free port in a background thread.

    Log records from ``taskboard.*`` are mirrored into the server's buffer
    for the duration of the test.
    """
    log_buffer = LogBuffer(capacity=200)
    handler = LogBufferHandler(log_buffer)
    pkg_logger = logging.getLogger(ROOT_LOGGER_NAME)
    previous_level = pkg_logger.level
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.INFO)

    qa_report = tmp_path / "QA_REPORT.md"
    server = create_server(
        data_file,
        "127.0.0.1",
        0,
        log_buffer=log_buffer,
        cors_origin="http://localhost:5173",
        qa_report=qa_report,
    )
    port = server.server_address[1]

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield LiveServer(f"http://127.0.0.1:{port}", data_file, log_buffer, qa_report)

    server.shutdown()
    server.server_close()
    thread.join(timeout=5)
    pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(previous_level)
