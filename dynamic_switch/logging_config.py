"""Logging for the switch server.

``setup_logging("Server")`` is called once at startup. Every record is then
tagged with the batch it belongs to: the API sets ``execution_id_var`` per
request and the switch sets ``node_id_var`` while it routes, so module
loggers need no extra arguments.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from contextvars import ContextVar
from pathlib import Path

STREAM_HANDLER_NAME = "_switch_stream"
FILE_HANDLER_NAME = "_switch_file"

LOG_FORMAT = "%(asctime)s %(context)s %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

execution_id_var: ContextVar[str] = ContextVar("execution_id_var", default="")
node_id_var: ContextVar[str] = ContextVar("node_id_var", default="")


class ContextFilter(logging.Filter):
    """Copies the handler's role and the current batch ids onto each record."""

    def __init__(self, role: str) -> None:
        super().__init__()
        self.role = role

    def filter(self, record: logging.LogRecord) -> bool:
        record.role = self.role  # type: ignore[attr-defined]
        record.execution_id = execution_id_var.get()  # type: ignore[attr-defined]
        record.node_id = node_id_var.get()  # type: ignore[attr-defined]
        return True


def _context_tag(record: logging.LogRecord) -> str:
    """``[Server][Exec 9f2c01ab][Node switch_1][INFO]``; empty parts are skipped."""
    role = getattr(record, "role", "")
    execution_id = getattr(record, "execution_id", "")
    node_id = getattr(record, "node_id", "")
    tag = f"[{role}]" if role else ""
    if execution_id:
        tag += f"[Exec {execution_id[:8]}]"
    if node_id:
        tag += f"[Node {node_id}]"
    return tag + f"[{record.levelname}]"


class ContextFormatter(logging.Formatter):
    def __init__(self, fmt: str = LOG_FORMAT, datefmt: str | None = DATE_FORMAT) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        record.context = _context_tag(record)  # type: ignore[attr-defined]
        return super().format(record)


def _attach(root: logging.Logger, handler: logging.Handler, name: str, role: str) -> None:
    handler.name = name
    handler.addFilter(ContextFilter(role))
    handler.setFormatter(ContextFormatter())
    root.addHandler(handler)


def setup_logging(role: str) -> None:
    """Install the stderr handler, plus a rotating file when ``LOG_FILE`` is set.

    Calling it again is a no-op. For server roles, uvicorn's own handlers are
    removed so its access and error logs go through the same handlers.
    """
    from config import settings

    root = logging.getLogger()
    if any(h.name == STREAM_HANDLER_NAME for h in root.handlers):
        return

    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    _attach(root, logging.StreamHandler(sys.stderr), STREAM_HANDLER_NAME, role)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        _attach(root, file_handler, FILE_HANDLER_NAME, role)

    if role.lower().startswith("server"):
        for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
            uvicorn_logger = logging.getLogger(name)
            uvicorn_logger.handlers.clear()
            uvicorn_logger.propagate = True
