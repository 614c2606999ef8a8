"""
Logging Configuration

Structured logging through structlog, rendered either as JSON lines or as
plain text. Diagnostics go to stderr so stdout stays free for operator
prompts and progress.
"""

import logging
import sys
from typing import TextIO

import structlog

# Global logger cache
_loggers = {}

# Handlers installed by setup_logging, replaced on reconfiguration
_handlers: list[logging.Handler] = []

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    output_file: str | None = None,
    stream: TextIO | None = None,
):
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Output format ("json" or "text")
        output_file: Optional file path for log output
        stream: Console stream, stderr by default
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_type == "json":
        renderer = structlog.processors.JSONRenderer()
        formatter = logging.Formatter("%(message)s")
    else:
        renderer = structlog.processors.KeyValueRenderer(key_order=["event"], drop_missing=True)
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    handlers: list[logging.Handler] = [console_handler]

    if output_file:
        file_handler = logging.FileHandler(output_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    root = logging.getLogger()
    for handler in _handlers:
        root.removeHandler(handler)
        handler.close()
    _handlers[:] = handlers
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(log_level)


def get_logger(name: str):
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        structlog logger bound to `name`
    """
    if name not in _loggers:
        _loggers[name] = structlog.get_logger(name)

    return _loggers[name]
