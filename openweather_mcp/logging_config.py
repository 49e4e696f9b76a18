"""JSON logging setup shared by the server and the demo client."""

import json
import logging
import sys
from typing import Optional

# Attributes every LogRecord carries; anything else was passed via ``extra``.
STANDARD_ATTRS = {
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
    "getMessage",
}


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs logs as JSON with all extra fields."""

    def format(self, record):
        log_data = {
            "timestamp": self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields = {}
        for k, v in record.__dict__.items():
            if k not in STANDARD_ATTRS and not k.startswith("_"):
                # Convert non-serializable objects to strings
                try:
                    json.dumps({k: v})
                    extra_fields[k] = v
                except (TypeError, ValueError):
                    extra_fields[k] = str(v)

        if extra_fields:
            log_data.update(extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def configure_logging(level: str = "INFO", stream: Optional[object] = None) -> None:
    """
    Install the JSON handler on the root logger.

    Args:
        level: Root log level name
        stream: Output stream, defaults to stderr (stdout belongs to the
            stdio transport)
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Reduce verbosity of httpx logs (only show warnings and errors)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("mcp").setLevel(logging.INFO)
    logging.getLogger("weather").setLevel(level)
