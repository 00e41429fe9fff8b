"""
Structured logging configuration.

This module provides logging with support for:
- Contextual fields (connection_id, room_id) bound per WebSocket connection
- JSON-formatted output for the error log file
- Human-readable or JSON console output
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from typing import Any

from chat_relay.settings import app_settings

# Context variables for storing connection-specific logging context
log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Attributes every LogRecord carries, everything else is an "extra" field
_RESERVED_RECORD_ATTRS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "exc_info",
    "exc_text",
    "stack_info",
    "taskName",
    "context",
}


def set_log_context(**kwargs: Any) -> None:
    """
    Set contextual fields for structured logging.

    Fields are attached to every log message emitted within the current
    context (one WebSocket connection handler).

    Args:
        **kwargs: Key-value pairs to add to log context.

    Example:
        >>> set_log_context(connection_id="c0ffee", room_id="lobby")
        >>> logger.info("Message relayed")  # Includes connection_id and room_id
    """
    # Copy so sibling tasks that inherited the same dict are not affected
    current = dict(log_context.get())
    current.update(kwargs)
    log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """
    Get current log context.

    Returns:
        Dictionary of contextual log fields.
    """
    return log_context.get()


def clear_log_context() -> None:
    """Clear the log context (at the end of a connection)."""
    log_context.set({})


class StructuredJSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs the standard fields (timestamp, level, logger, message), the
    contextual fields from log_context, exception information and any
    extra fields passed to the logging call.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: The log record to format.

        Returns:
            JSON string with structured log data.
        """
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = get_log_context()
        if context:
            log_data.update(context)

        log_data["environment"] = app_settings.ENVIRONMENT

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter for console output (non-JSON).

    Uses different format strings based on log level for better readability
    during development.
    """

    INFO_FMT = "%(asctime)s - [%(context)s] %(levelname)s: %(message)s"
    ERROR_FMT = "%(asctime)s - [%(context)s] %(levelname)s: %(module)s.%(funcName)s:%(lineno)d - %(message)s"

    def __init__(self, *args: Any, **kwargs: Any):
        """Initialize the formatter."""
        super().__init__(*args, **kwargs)
        self._formatters = {
            logging.INFO: logging.Formatter(
                self.INFO_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
            logging.WARNING: logging.Formatter(
                self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
            logging.ERROR: logging.Formatter(
                self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
            logging.DEBUG: logging.Formatter(
                self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
        }

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record with the connection context.

        Args:
            record: The log record to format.

        Returns:
            Formatted log string.
        """
        context = get_log_context()
        record.context = (
            " ".join(f"{k}={v}" for k, v in context.items()) if context else "-"
        )

        formatter = self._formatters.get(
            record.levelno, self._formatters[logging.INFO]
        )
        return formatter.format(record)


def setup_logging() -> logging.Logger:
    """
    Configure logging for the relay.

    This function sets up:
    - Console handler (human-readable or JSON, see LOG_CONSOLE_FORMAT)
    - File handler for errors (JSON format)

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger("chat_relay")
    logger.setLevel(getattr(logging, app_settings.LOG_LEVEL.upper()))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    if app_settings.LOG_CONSOLE_FORMAT == "json":
        console_handler.setFormatter(StructuredJSONFormatter())
    else:
        console_handler.setFormatter(HumanReadableFormatter())
    logger.addHandler(console_handler)

    try:
        log_dir = os.path.dirname(app_settings.LOG_FILE_PATH)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(app_settings.LOG_FILE_PATH)
        file_handler.setLevel(logging.ERROR)
        file_handler.setFormatter(StructuredJSONFormatter())
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"Could not create file handler: {e}")

    # Disable logging during pytest runs
    if sys.argv[0].split("/")[-1] in ["pytest"]:
        logging.disable(logging.ERROR)

    return logger


# Create default logger instance
logger = setup_logging()
