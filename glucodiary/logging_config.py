"""Structured logging configuration.

Every record carries the service name and, while a repository operation
is running, its operation id, so the lines a single create/load/edit
emits across the repository and both stores can be grouped together.
Structured context is passed as keyword arguments to the logger methods.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Set by the repositories for the duration of each operation
operation_id_ctx: ContextVar[str | None] = ContextVar("operation_id", default=None)

# Third-party loggers that are too chatty below WARNING
_QUIET_LOGGERS = ("sqlalchemy.engine", "httpx")


class _ServiceFormatter(logging.Formatter):
    """Shared record handling for the JSON and text formats."""

    def __init__(self, service_name: str = "glucodiary"):
        super().__init__()
        self.service_name = service_name

    @staticmethod
    def timestamp(record: logging.LogRecord) -> datetime:
        return datetime.fromtimestamp(record.created, tz=timezone.utc)

    @staticmethod
    def fields(record: logging.LogRecord) -> dict[str, Any]:
        return getattr(record, "extra_fields", None) or {}


class JsonFormatter(_ServiceFormatter):
    """One JSON object per line.

    Keys: timestamp, level, service, message, logger, operation_id (when
    set), the structured fields, exception (when present) and location
    (ERROR and above).
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.timestamp(record).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "message": record.getMessage(),
            "logger": record.name,
        }

        operation_id = operation_id_ctx.get()
        if operation_id:
            log_data["operation_id"] = operation_id

        log_data.update(self.fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.levelno >= logging.ERROR:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class TextFormatter(_ServiceFormatter):
    """Human-readable format for development.

    Format: timestamp - service - level - [operation_id] - message key=value...
    """

    def format(self, record: logging.LogRecord) -> str:
        line = " - ".join(
            (
                self.timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
                self.service_name,
                record.levelname,
                f"[{operation_id_ctx.get() or '-'}]",
                record.getMessage(),
            )
        )

        fields = self.fields(record)
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"

        return line


def setup_logging(
    log_format: str = "text",
    log_level: str = "INFO",
    service_name: str = "glucodiary",
) -> None:
    """Route all logging to stdout in the chosen format.

    Args:
        log_format: 'json' for structured logging, 'text' for human-readable
        log_level: Logging level name; unknown names fall back to INFO
        service_name: Service name written on every record
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    formatter_class = JsonFormatter if log_format.lower() == "json" else TextFormatter

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter_class(service_name=service_name))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class StructuredLogger:
    """Logger wrapper taking structured fields as keyword arguments."""

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, fields: dict[str, Any]) -> None:
        extra = {"extra_fields": fields} if fields else None
        self._logger.log(level, msg, extra=extra)

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._log(logging.ERROR, msg, fields)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger, typically with __name__."""
    return StructuredLogger(name)
