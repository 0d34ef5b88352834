"""Structured logging for wstunnel-units.

Importing the package routes structlog through the standard library
(:func:`configure_library_logging`) without installing any handler, so a
caller that never configures logging sees nothing below WARNING, exactly as
with a plain ``logging`` user. Applications and the CLI opt in to console or
JSON output with :func:`setup_logging`.
"""

import logging
import sys
from typing import TextIO

import structlog
from structlog.typing import Processor

FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _event_processors() -> list[Processor]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_library_logging() -> None:
    """Send events to stdlib loggers named after the emitting module.

    Leaves an existing structlog configuration alone. Loggers are not cached
    so a later :func:`setup_logging` also applies to module-level loggers.
    """
    if structlog.is_configured():
        return

    structlog.configure(
        processors=[*_event_processors(), structlog.dev.ConsoleRenderer(colors=False)],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON formatted logs
        log_file: Optional file path to write logs to
        stream: Console stream, stderr by default so rendered units on
            stdout stay clean
    """
    log_level = getattr(logging, level.upper())

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    handlers[0].setFormatter(logging.Formatter("%(message)s"))
    if log_file:
        handlers.append(logging.FileHandler(log_file))
        handlers[1].setFormatter(logging.Formatter(FILE_LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(log_level)
    for handler in handlers:
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[*_event_processors(), renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
