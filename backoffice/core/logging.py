"""Logging setup.

LOG_JSON picks the output format: one readable line per record for a
terminal, or one JSON object per line for a log aggregator.

Every record written while a request is in flight carries the request
id, and behind the session gate the signed-in operator's id.  Both live
in ContextVars set by RequestContextMiddleware and require_session_user;
the filter on the stdout handler copies them onto each record, whichever
logger emitted it.

Passwords never reach a log call.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)

_QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "sqlalchemy.engine")


class RequestContextFilter(logging.Filter):
    """Copy request_id and user_id onto the record unless already set."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        if getattr(record, "user_id", None) is None:
            record.user_id = user_id_var.get()
        return True


class _ContainerFormatter(logging.Formatter):
    """``<time> <LEVEL> <logger>  <message>``, plus ``[file:line]`` at WARNING+."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = super().formatTime(record, datefmt)
        # 2026-10-19T12:00:00.123+0000
        return f"{stamp[:-5]}.{int(record.msecs):03d}{stamp[-5:]}"

    def formatMessage(self, record: logging.LogRecord) -> str:
        # Suffixes go on the message line, ahead of any traceback.
        line = super().formatMessage(record)
        request_id = getattr(record, "request_id", None)
        if request_id:
            line += f"  rid={request_id}"
        if record.levelno >= logging.WARNING:
            line += f"  [{record.filename}:{record.lineno}]"
        return line


class _JsonFormatter(logging.Formatter):
    """JSON Lines.  Context fields that were never attached are omitted."""

    _CONTEXT_FIELDS = (
        "request_id",
        "user_id",
        "method",
        "path",
        "route",
        "status_code",
        "duration_ms",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, value)
            for key in self._CONTEXT_FIELDS
            if (value := getattr(record, key, None)) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Send every log record to stdout at ``level_name`` (INFO if unknown)."""
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
