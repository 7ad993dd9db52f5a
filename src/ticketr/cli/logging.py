"""
Logging - Text and JSON log formatting for the CLI.

Text logs are meant for humans at a terminal; JSON logs emit one object per
line for log aggregation:

    {"timestamp": "2024-01-15T10:30:00.123Z", "level": "INFO",
     "logger": "PullService", "message": "Pull complete", "context": {...}}
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any


# Attributes every LogRecord carries; anything else arrived through `extra`
STANDARD_ATTRS = frozenset(
    {
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
        "message",
        "module",
        "msecs",
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
)

NOISY_LOGGERS = ("urllib3", "requests")


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in STANDARD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def __init__(
        self,
        static_fields: dict[str, Any] | None = None,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_location: bool = False,
    ):
        """
        Args:
            static_fields: Fields added to every record (service, version, ...)
            include_timestamp: Emit an ISO 8601 UTC timestamp
            include_level: Emit the level name
            include_logger: Emit the logger name
            include_location: Emit file, line and function
        """
        super().__init__()
        self.static_fields = static_fields or {}
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {}

        if self.include_timestamp:
            created = datetime.fromtimestamp(record.created, tz=timezone.utc)
            entry["timestamp"] = created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{created.microsecond // 1000:03d}Z"
        if self.include_level:
            entry["level"] = record.levelname
        if self.include_logger:
            entry["logger"] = record.name

        entry["message"] = record.getMessage()
        entry.update(self.static_fields)

        if self.include_location:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        context = _extra_fields(record)
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
            }

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human readable formatter with optional level colors."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1m\033[31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, include_context: bool = True):
        super().__init__(datefmt="%H:%M:%S")
        self.use_colors = use_colors
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"

        line = f"{self.formatTime(record, self.datefmt)} {level} {record.name}: {record.getMessage()}"

        if self.include_context:
            context = _extra_fields(record)
            if context:
                line += " " + " ".join(f"{key}={value!r}" for key, value in context.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger:
    """
    Logger wrapper that attaches fixed context fields to every record.

    Example:
        log = get_logger("BulkOperationExecutor", action="update")
        log.bind(ticket="PROJ-1").info("Updated")
    """

    def __init__(self, name: str, context: dict[str, Any] | None = None):
        self._logger = logging.getLogger(name)
        self._context = dict(context or {})

    def bind(self, **context: Any) -> "ContextLogger":
        """Return a new logger with additional context."""
        return ContextLogger(self._logger.name, {**self._context, **context})

    def _log(self, level: int, msg: str, **kwargs: Any) -> None:
        extra = {**self._context, **kwargs.pop("extra", {})}
        self._logger.log(level, msg, extra=extra, **kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, **kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, **kwargs)


def get_logger(name: str, **context: Any) -> ContextLogger:
    """Get a ContextLogger with optional static context."""
    return ContextLogger(name, context)


def setup_logging(
    level: int = logging.INFO,
    log_format: str = "text",
    log_file: str | None = None,
    static_fields: dict[str, Any] | None = None,
) -> None:
    """
    Configure the root logger.

    Existing root handlers are replaced by one stderr handler, plus a file
    handler when log_file is given. File output never carries colors.

    Args:
        level: Root log level
        log_format: "text" or "json"
        log_file: Optional path to also write logs to
        static_fields: Fields added to every JSON record
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(level)

    def make_formatter(tty: bool) -> logging.Formatter:
        if log_format == "json":
            return JSONFormatter(static_fields=static_fields)
        return TextFormatter(use_colors=tty)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(make_formatter(sys.stderr.isatty()))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(make_formatter(False))
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
