"""
app/core/logging.py

Purpose: Logging setup for OrderDesk

- JSON lines in staging and production, coloured single lines in development
- Order context (user, role, order, shopkeeper) carried through LogContext or `extra`
"""

import json
import logging
import sys
from datetime import datetime, timezone

from app.core.config import settings

# Record attributes rendered as context when present
CONTEXT_FIELDS = ("user_id", "role", "order_id", "shopkeeper_id", "process_time")

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"

NOISY_LOGGERS = ("motor", "pymongo", "urllib3", "cloudinary", "uvicorn.access")


def _context(record: logging.LogRecord) -> dict:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}


class JsonFormatter(logging.Formatter):
    """One JSON object per line for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
            **_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, RESET)
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}[{stamp}] {record.levelname:<8}{RESET} {record.name}: {record.getMessage()}"

        context = _context(record)
        if context:
            line += " [" + ", ".join(f"{k}={v}" for k, v in context.items()) + "]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging() -> logging.Logger:
    """Installs the stdout handler on the root logger; called once from app.main."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if settings.is_production_like else ConsoleFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("orderdesk")
    logger.info(f"Logging configured ({settings.ENVIRONMENT}, level {settings.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"orderdesk.{name}")


class LogContext:
    """
    Stamps every record created inside the block with the given fields.

    Usage:
        with LogContext(user_id=str(user["_id"]), role=user["role"]):
            logger.info("Placing order")
    """

    def __init__(self, **fields):
        self.fields = fields
        self._previous = None

    def __enter__(self):
        self._previous = logging.getLogRecordFactory()
        previous = self._previous
        fields = self.fields

        def factory(*args, **kwargs):
            record = previous(*args, **kwargs)
            for key, value in fields.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._previous)
