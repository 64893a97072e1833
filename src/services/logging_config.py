"""
Logging configuration for TaxPilot AI.

Provides:
- JSON formatting for production (one object per line)
- Human-readable formatting for development
- The request id of the current HTTP request on every record
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

# Filled by the correlation middleware for the duration of a request
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)

# Libraries that log every outbound HTTP call at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Extra fields can be attached with ``extra={'extra_data': {...}}``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        extra_data = getattr(record, 'extra_data', None)
        if isinstance(extra_data, dict):
            log_data.update(extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ReadableFormatter(logging.Formatter):
    """Colored single-line formatter for development."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S.%f')[:-3]
        if self.use_colors:
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            level = f"{color}{record.levelname:8s}{self.COLORS['RESET']}"
        else:
            level = f"{record.levelname:8s}"

        message = f"{timestamp} {level} [{record.name}] {record.getMessage()}"

        request_id = request_id_var.get()
        if request_id:
            message += f" | request_id={request_id}"

        extra_data = getattr(record, 'extra_data', None)
        if extra_data:
            message += " | " + ' | '.join(f"{k}={v}" for k, v in extra_data.items())

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure application logging on the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON formatted logs
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    root_logger.handlers.clear()

    if json_output:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = ReadableFormatter(use_colors=sys.stdout.isatty())

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
