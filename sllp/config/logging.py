"""Logging helpers for the SLLP client."""

from __future__ import annotations

import msgspec
import logging
from datetime import datetime, timezone
from logging import Handler
from logging.config import dictConfig
from logging.handlers import SysLogHandler
from pathlib import Path
from typing import Any

from .model import ClientConfig

SYSLOG_SOCKET = Path("/dev/log")
SYSLOG_SOCKET_FALLBACK = Path("/var/run/log")

_RESERVED_LOG_KEYS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


def _serialise_value(value: Any) -> Any:
    """Serialise values for JSON logs; bytes become ``[DE AD BE EF]``."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"[{' '.join(f'{b:02X}' for b in bytes(value))}]"
    return str(value)


class StructuredLogFormatter(logging.Formatter):
    """Emit JSON per log line while trimming the shared prefix."""

    PREFIX = "sllp."

    def format(self, record: logging.LogRecord) -> str:
        logger_name = record.name
        if logger_name.startswith(self.PREFIX):
            logger_name = logger_name[len(self.PREFIX) :]

        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": logger_name,
            "message": record.getMessage(),
        }

        extras = {
            key: _serialise_value(value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_LOG_KEYS and not key.startswith("_")
        }
        if extras:
            payload["extra"] = extras

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return msgspec.json.encode(payload).decode("utf-8")


def _build_handler(log_stream: bool = False, ident: str = "sllp") -> Handler:
    if log_stream:
        return logging.StreamHandler()

    for candidate in (SYSLOG_SOCKET, SYSLOG_SOCKET_FALLBACK):
        if candidate.exists():
            syslog_handler = SysLogHandler(
                address=str(candidate),
                facility=SysLogHandler.LOG_USER,
            )
            syslog_handler.ident = f"{ident} "
            return syslog_handler
    return logging.StreamHandler()


def configure_logging(config: ClientConfig) -> None:
    """Configure the ``sllp`` logger tree from client settings."""

    level_name = "DEBUG" if config.debug_logging else "INFO"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": "sllp.config.logging.StructuredLogFormatter",
                }
            },
            "handlers": {
                "sllp": {
                    "()": _build_handler,
                    "log_stream": config.log_stream,
                    "ident": config.syslog_ident,
                    "level": level_name,
                    "formatter": "structured",
                }
            },
            "loggers": {
                "sllp": {
                    "level": level_name,
                    "handlers": ["sllp"],
                    "propagate": False,
                }
            },
        }
    )

    logging.getLogger("sllp").info("Logging configured at level %s", level_name)
