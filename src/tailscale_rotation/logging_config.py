"""
Structured logging for the rotation function.

Every log record is emitted as one JSON line carrying the rotation token of the
current invocation as its correlation ID, so all lines of one rotation step can
be grouped in CloudWatch.

Usage:
    from tailscale_rotation.logging_config import setup_structured_logging, correlation_id_var

    setup_structured_logging("INFO")
    correlation_id_var.set(client_request_token)
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from typing import Optional

# Rotation token (ClientRequestToken) of the invocation being processed
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_STANDARD_ATTRS = frozenset(
    {
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
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "message",
        "taskName",
    }
)


def sanitize_log_input(value: Optional[str]) -> str:
    """Sanitize input for logging to prevent log injection."""
    if value is None:
        return "None"
    return value.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")


class StructuredFormatter(logging.Formatter):
    """JSON formatter with correlation ID.

    Each entry includes timestamp, level, logger name, message, correlation ID,
    and any extra fields passed via `extra=`.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id_var.get(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_structured_logging(log_level: str = "INFO") -> None:
    """Configure the root logger for JSON output on stdout.

    The Lambda runtime installs its own handler on the root logger; it is
    replaced so that every line goes through StructuredFormatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    handler.setLevel(level)

    root_logger.addHandler(handler)

    # botocore is chatty at INFO
    logging.getLogger("botocore").setLevel(max(level, logging.WARNING))
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
