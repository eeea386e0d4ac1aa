"""Structured logging configuration for agentfleet.

Every record is one JSON object. Modules log through ``get_logger(__name__)``
and attach identifiers with ``extra={"context": {...}}``; the identifiers in
``PROMOTED_FIELDS`` are also copied to the top level so log shippers can
filter a single agent or pull request without parsing the context.
"""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from .config import DEFAULT_LOG_PATH

PROMOTED_FIELDS = ("agent_id", "pr_number")

# Chatty dependencies; one line per HTTP request or SQL statement at INFO/DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite", "anthropic")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return str(value)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            for field in PROMOTED_FIELDS:
                if field in context:
                    log_data[field] = context[field]
        if context is not None:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=_json_default)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    console: bool = True,
) -> None:
    """
    Configure JSON logging to a rotating file and, optionally, stdout.

    Args:
        log_level: Root level name. Defaults to LOG_LEVEL env var or INFO.
        log_file: Path to log file. Defaults to logs/agentfleet.log.
        console: Also write to stdout.

    Third-party loggers in QUIET_LOGGERS are held at WARNING unless the
    root level is DEBUG.
    """
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_path = Path(log_file) if log_file else DEFAULT_LOG_PATH
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handlers: dict[str, dict[str, Any]] = {
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(log_path),
            "maxBytes": 10 * 1024 * 1024,  # 10 MB
            "backupCount": 5,
            "formatter": "json",
            "encoding": "utf-8",
        },
    }
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        }

    dependency_level = "DEBUG" if level == "DEBUG" else "WARNING"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": "agentfleet.logging_config.JSONFormatter"},
            },
            "handlers": handlers,
            "loggers": {
                name: {"level": dependency_level} for name in QUIET_LOGGERS
            },
            "root": {"level": level, "handlers": list(handlers)},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; name is typically ``__name__``."""
    return logging.getLogger(name)
