"""
Logging utilities with structured formatting.
"""
import json
import logging
import sys
from datetime import datetime
from typing import Any, Optional, TextIO

from ..error.handler import to_string_mach


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, config: Any = None, **kwargs):
        """Initialize with the rendering configuration and optional fields."""
        self.config = config
        self.additional_fields = kwargs
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        # Exceptions are rendered on a single line
        if record.exc_info and record.exc_info[1] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": to_string_mach(record.exc_info[1], self.config),
                "traceback": self.formatException(record.exc_info)
            }

        log_data.update(self.additional_fields)

        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, default=str)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that attaches a context dictionary to log records."""

    def process(self, msg, kwargs):
        """Add context to log records."""
        kwargs.setdefault("extra", {})["context"] = self.extra
        return msg, kwargs


def setup_logging(
    log_level: str = "INFO",
    structured: bool = False,
    stream: Optional[TextIO] = None,
    config: Any = None
) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Logging level name
        structured: Emit JSON lines instead of text
        stream: Output stream, ``sys.stderr`` when None
        config: ExnConfig used to render exceptions in JSON records
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    if structured:
        handler.setFormatter(JsonFormatter(config, application="exnkit"))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
    root_logger.addHandler(handler)

    logging.debug(f"Logging configured with level: {log_level}")


def get_logger(name: str, **context) -> logging.Logger:
    """
    Get a logger with context.

    Args:
        name: Logger name
        **context: Additional context fields

    Returns:
        Logger, wrapped in an adapter when context is given
    """
    logger = logging.getLogger(name)

    if context:
        return ContextLoggerAdapter(logger, context)

    return logger
