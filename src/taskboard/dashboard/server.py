"""HTTP server for the task API, browser client and log console."""

from __future__ import annotations

import json
import logging
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from taskboard.core.config import DEFAULT_CORS_ORIGIN
from taskboard.core.qa_report import parse_qa_report
from taskboard.core.validation import TaskValidationError
from taskboard.logs import LogBuffer
from taskboard.storage.operations import (
    TaskNotFoundError,
    create_task,
    delete_task,
    list_tasks,
    task_stats,
    update_task,
)

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"

# Maximum allowed request body size (1 MiB)
MAX_REQUEST_BODY_BYTES = 1_048_576

_CONTENT_TYPES = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".svg": "image/svg+xml",
    ".png": "image/png",
}

# Types served with an explicit utf-8 charset
_TEXT_TYPES = frozenset(
    {"text/html", "text/css", "application/javascript", "application/json", "image/svg+xml"}
)

# ---------------------------------------------------------------------------
# JSON body helpers
# ---------------------------------------------------------------------------


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _err(code: str, message: str) -> dict:
    return {"error": message, "code": code}


def _exc_text(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


# ---------------------------------------------------------------------------
# Request handler
# ---------------------------------------------------------------------------


def _make_handler_class(
    data_file: Path,
    *,
    log_buffer: LogBuffer,
    cors_origin: str = DEFAULT_CORS_ORIGIN,
    qa_report: Path | None = None,
) -> type:
    """Create a handler class bound to a task file and log buffer."""

    class TaskboardHandler(BaseHTTPRequestHandler):
        _data_file: Path = data_file
        _log_buffer: LogBuffer = log_buffer
        _cors_origin: str = cors_origin
        _qa_report: Path | None = qa_report

        # Access lines go through logging instead of raw stderr
        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
            logger.debug("%s - %s", self.address_string(), format % args)

        def _parsed_path(self) -> str:
            path = urlparse(self.path).path
            path = path.rstrip("/") or "/"
            logger.info("%s %s", self.command, path)
            return path

        def do_GET(self) -> None:  # noqa: N802
            path = self._parsed_path()

            if path == "/":
                self._serve_static("index.html")
            elif path == "/console":
                self._serve_static("console.html")
            elif path.startswith("/static/"):
                rel_path = path[len("/static/") :]
                # Block path traversal
                if ".." in rel_path or rel_path.startswith("/"):
                    self._send_json(403, _err("FORBIDDEN", "Path traversal not allowed"))
                    return
                self._serve_static(rel_path)
            elif path == "/health":
                logger.info("Health check requested")
                self._send_json(200, {"ok": True})
            elif path == "/logs":
                self._send_json(200, self._log_buffer.entries())
            elif path == "/test-results":
                self._handle_test_results()
            elif path == "/tasks":
                self._handle_list_tasks()
            elif path == "/stats":
                self._handle_stats()
            else:
                self._send_json(404, _err("NOT_FOUND", f"Not found: {path}"))

        def do_POST(self) -> None:  # noqa: N802
            path = self._parsed_path()

            if path == "/tasks":
                self._handle_create_task()
            else:
                self._send_json(404, _err("NOT_FOUND", f"Not found: {path}"))

        def do_PUT(self) -> None:  # noqa: N802
            path = self._parsed_path()

            task_id = self._task_id_from(path)
            if task_id is None:
                self._send_json(404, _err("NOT_FOUND", f"Not found: {path}"))
                return
            self._handle_update_task(task_id)

        def do_DELETE(self) -> None:  # noqa: N802
            path = self._parsed_path()

            if path == "/logs":
                self._log_buffer.clear()
                logger.info("Logs cleared")
                self._send_empty(204)
                return

            task_id = self._task_id_from(path)
            if task_id is None:
                self._send_json(404, _err("NOT_FOUND", f"Not found: {path}"))
                return
            self._handle_delete_task(task_id)

        def do_OPTIONS(self) -> None:  # noqa: N802
            self.send_response(204)
            self._send_cors_headers()
            self.send_header("Access-Control-Allow-Methods", "GET, POST, PUT, DELETE, OPTIONS")
            self.send_header("Access-Control-Allow-Headers", "Content-Type")
            self.send_header("Content-Length", "0")
            self.end_headers()

        @staticmethod
        def _task_id_from(path: str) -> str | None:
            if not path.startswith("/tasks/"):
                return None
            remainder = path[len("/tasks/") :]
            if not remainder or "/" in remainder:
                return None
            return unquote(remainder)

        # ---------------------------------------------------------------
        # Response helpers
        # ---------------------------------------------------------------

        def _send_cors_headers(self) -> None:
            self.send_header("Access-Control-Allow-Origin", self._cors_origin)
            self.send_header("Access-Control-Allow-Credentials", "true")
            self.send_header("Vary", "Origin")

        def _send_json(self, status: int, data: Any) -> None:
            body = _dump(data).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self._send_cors_headers()
            self.end_headers()
            self.wfile.write(body)

        def _send_empty(self, status: int) -> None:
            self.send_response(status)
            self._send_cors_headers()
            self.end_headers()

        def _serve_static(self, filename: str) -> None:
            filepath = STATIC_DIR / filename
            if not filepath.is_file():
                self._send_json(404, _err("NOT_FOUND", f"Static file not found: {filename}"))
                return
            content_type = _CONTENT_TYPES.get(filepath.suffix, "application/octet-stream")
            data = filepath.read_bytes()
            self.send_response(200)
            if content_type in _TEXT_TYPES:
                content_type += "; charset=utf-8"
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def _read_request_body(self) -> dict | None:
            """Read and parse a JSON object body.

            An empty body reads as ``{}``.  Returns None after sending an
            error response.
            """
            try:
                content_length = int(self.headers.get("Content-Length", 0))
            except (TypeError, ValueError):
                self._send_json(400, _err("BAD_REQUEST", "Missing or invalid Content-Length"))
                return None

            if content_length <= 0:
                return {}

            if content_length > MAX_REQUEST_BODY_BYTES:
                self._send_json(
                    413,
                    _err(
                        "PAYLOAD_TOO_LARGE", f"Request body exceeds {MAX_REQUEST_BODY_BYTES} bytes"
                    ),
                )
                return None

            try:
                raw = self.rfile.read(content_length)
                body = json.loads(raw) if raw.strip() else {}
            except (ValueError, RecursionError):
                self._send_json(400, _err("BAD_REQUEST", "Invalid JSON in request body"))
                return None

            if not isinstance(body, dict):
                self._send_json(400, _err("BAD_REQUEST", "Request body must be a JSON object"))
                return None
            return body

        # ---------------------------------------------------------------
        # Endpoint handlers
        # ---------------------------------------------------------------

        def _handle_list_tasks(self) -> None:
            try:
                tasks = list_tasks(self._data_file)
            except Exception as exc:
                logger.error("GET /tasks - Error: %s", _exc_text(exc))
                self._send_json(500, _err("INTERNAL_ERROR", "Failed to load tasks"))
                return
            logger.info("GET /tasks - Returning %d tasks", len(tasks))
            self._send_json(200, tasks)

        def _handle_stats(self) -> None:
            try:
                stats = task_stats(self._data_file)
            except Exception as exc:
                logger.error("GET /stats - Error: %s", _exc_text(exc))
                self._send_json(500, _err("INTERNAL_ERROR", "Failed to load statistics"))
                return
            logger.info(
                "GET /stats - Total: %d, Active: %d, Completed: %d",
                stats["total"],
                stats["active"],
                stats["completed"],
            )
            self._send_json(200, stats)

        def _handle_test_results(self) -> None:
            results = None
            if self._qa_report is not None:
                results = parse_qa_report(self._qa_report)
            self._send_json(200, results or {"summary": None, "sections": []})

        def _handle_create_task(self) -> None:
            """Handle POST /tasks: create a new task."""
            body = self._read_request_body()
            if body is None:
                return  # error already sent

            try:
                task = create_task(self._data_file, body.get("title"), body.get("dueDate"))
            except TaskValidationError as exc:
                logger.info("POST /tasks - Invalid request: %s (%s)", exc.message, exc.code)
                self._send_json(400, exc.to_dict())
                return
            except Exception as exc:
                logger.error("POST /tasks - Error: %s", _exc_text(exc))
                self._send_json(500, _err("INTERNAL_ERROR", "Failed to create task"))
                return

            self._send_json(201, task)

        def _handle_update_task(self, task_id: str) -> None:
            """Handle PUT /tasks/<id>: partial update."""
            body = self._read_request_body()
            if body is None:
                return

            try:
                task = update_task(self._data_file, task_id, body)
            except TaskNotFoundError as exc:
                logger.info("PUT /tasks/%s - Task not found", task_id)
                self._send_json(404, _err("TASK_NOT_FOUND", str(exc)))
                return
            except TaskValidationError as exc:
                logger.info(
                    "PUT /tasks/%s - Invalid request: %s (%s)", task_id, exc.message, exc.code
                )
                self._send_json(400, exc.to_dict())
                return
            except Exception as exc:
                logger.error("PUT /tasks/%s - Error: %s", task_id, _exc_text(exc))
                self._send_json(500, _err("INTERNAL_ERROR", "Failed to update task"))
                return

            self._send_json(200, task)

        def _handle_delete_task(self, task_id: str) -> None:
            """Handle DELETE /tasks/<id>."""
            try:
                delete_task(self._data_file, task_id)
            except TaskNotFoundError as exc:
                logger.info("DELETE /tasks/%s - Task not found", task_id)
                self._send_json(404, _err("TASK_NOT_FOUND", str(exc)))
                return
            except Exception as exc:
                logger.error("DELETE /tasks/%s - Error: %s", task_id, _exc_text(exc))
                self._send_json(500, _err("INTERNAL_ERROR", "Failed to delete task"))
                return

            self._send_empty(204)

    return TaskboardHandler


# ---------------------------------------------------------------------------
# Server factory
# ---------------------------------------------------------------------------


def create_server(
    data_file: Path,
    host: str,
    port: int,
    *,
    log_buffer: LogBuffer | None = None,
    cors_origin: str = DEFAULT_CORS_ORIGIN,
    qa_report: Path | None = None,
) -> HTTPServer:
    """Create an HTTP server bound to *host*:*port* serving the task API.

    Parameters
    ----------
    data_file:
        JSON file holding the task collection.
    host:
        Bind address (e.g. ``"127.0.0.1"``).
    port:
        TCP port to listen on.  ``0`` picks a free port.
    log_buffer:
        Buffer exposed at ``/logs``.  A fresh, empty one is created if omitted.
    cors_origin:
        Value of ``Access-Control-Allow-Origin`` on every response.
    qa_report:
        Markdown QA report served (parsed) at ``/test-results``.
    """
    handler_cls = _make_handler_class(
        data_file,
        log_buffer=log_buffer if log_buffer is not None else LogBuffer(),
        cors_origin=cors_origin,
        qa_report=qa_report,
    )
    return HTTPServer((host, port), handler_cls)
