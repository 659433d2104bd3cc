"""
Bug Tracker - Logging

One "bugtracker" logger for the whole server. Development gets short readable
lines on stdout; production emits one JSON object per line. Every record is
stamped with the current request id and user id (see RequestLoggingMiddleware
and the auth dependencies).
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from bugtracker.core.config import settings


LOGGER_NAME = "bugtracker"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024

_request_id: ContextVar[str] = ContextVar("bugtracker_request_id", default="")
_user_id: ContextVar[str] = ContextVar("bugtracker_user_id", default="")


def generate_request_id() -> str:
    return uuid.uuid4().hex[:8]


def get_request_id() -> str:
    return _request_id.get()


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id or "")


def get_user_id() -> str:
    return _user_id.get()


def set_user_id(user_id: str) -> None:
    _user_id.set(user_id or "")


# Attributes every LogRecord carries; anything else came in through ``extra``
_STANDARD_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "request_id", "user_id"}


class RequestContextFilter(logging.Filter):
    """Copies the request/user context variables onto each record"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.user_id = get_user_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Single-line JSON records for log shipping in production"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for name in ("request_id", "user_id"):
            value = getattr(record, name, "-")
            if value and value != "-":
                payload[name] = value

        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_FIELDS and not key.startswith("_")
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
            }

        return json.dumps(payload, default=str)


class BugTrackerLogger(logging.Logger):
    """Logger with one helper per kind of event the server reports"""

    def _emit(self, level: int, message: str, event_type: str, fields: Dict[str, Any],
              exc_info: bool = False) -> None:
        self.log(level, message, exc_info=exc_info, extra={"event_type": event_type, **fields})

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **fields) -> None:
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        self._emit(
            level,
            f"{method} {path} -> {status_code} in {duration_ms:.1f}ms",
            "http_request",
            {"http_method": method, "http_path": path, "http_status": status_code,
             "duration_ms": round(duration_ms, 2), **fields},
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, **fields) -> None:
        parts = [f"Auth {event} {'ok' if success else 'failed'}"]
        if user_email:
            parts.append(user_email)
        if reason:
            parts.append(reason)
        self._emit(
            logging.INFO if success else logging.WARNING,
            " | ".join(parts),
            "auth",
            {"auth_event": event, "auth_success": success,
             "user_email": user_email, "failure_reason": reason, **fields},
        )

    def log_bug_event(self, event: str, bug_id: Optional[str] = None,
                      bug_number: Optional[str] = None, **fields) -> None:
        """event is one of created, updated, deleted, not_found"""
        label = bug_number or bug_id or "?"
        self._emit(
            logging.WARNING if event == "not_found" else logging.INFO,
            f"Bug {label} {event.replace('_', ' ')}",
            "bug",
            {"bug_event": event, "bug_id": bug_id, "bug_number": bug_number, **fields},
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None,
                               **fields) -> None:
        error_type = type(error).__name__
        self._emit(
            logging.ERROR,
            f"{error_type} during {context or 'request'}: {error}",
            "error",
            {"error_type": error_type, "error_message": str(error),
             "error_context": context, **fields},
            exc_info=True,
        )


def _build_formatters(json_logs: bool):
    if json_logs:
        formatter = JSONFormatter()
        return formatter, formatter
    console = logging.Formatter("%(levelname)-8s [%(request_id)s] %(message)s")
    verbose = logging.Formatter(
        "%(asctime)s %(levelname)-8s [%(request_id)s/%(user_id)s] "
        "%(module)s:%(lineno)d %(message)s"
    )
    return console, verbose


def setup_logging() -> BugTrackerLogger:
    """(Re)configure the "bugtracker" logger from settings"""
    logging.setLoggerClass(BugTrackerLogger)
    log = logging.getLogger(LOGGER_NAME)
    if not isinstance(log, BugTrackerLogger):
        # Created before our class was registered
        log.__class__ = BugTrackerLogger

    log.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    json_logs = settings.ENVIRONMENT == "production"
    console_formatter, file_formatter = _build_formatters(json_logs)

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(console_formatter)
    stdout.addFilter(RequestContextFilter())
    log.addHandler(stdout)

    if settings.LOG_FILE:
        path = Path(settings.LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=5)
        rotating.setLevel(logging.DEBUG)
        rotating.setFormatter(file_formatter)
        rotating.addFilter(RequestContextFilter())
        log.addHandler(rotating)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return log


logger: BugTrackerLogger = setup_logging()


__all__ = [
    "logger",
    "setup_logging",
    "generate_request_id",
    "get_request_id",
    "set_request_id",
    "get_user_id",
    "set_user_id",
    "BugTrackerLogger",
    "JSONFormatter",
    "RequestContextFilter",
]
