"""Logging configuration for the Cupid match engine."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

from cupid.config import settings


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    Routes standard library logging through `structlog` with context merging,
    timestamps and exception rendering. Development gets the console renderer,
    every other environment gets one JSON object per line.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        stream=sys.stdout,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.ENVIRONMENT.lower() == "development":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger with the given name and initial values.

    Args:
        name (str): Logger name (usually `__name__`).
        **initial_values: Key-value pairs to initially bind to the logger context.

    Returns:
        structlog.stdlib.BoundLogger: A configured structured logger instance.
    """
    return structlog.get_logger(name).bind(**initial_values)  # type: ignore


def log_error(
    logger: structlog.stdlib.BoundLogger,
    error: Exception,
    message: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log an error with structured context.

    Includes the error type and message, plus `details` when the error is one of
    the `CupidError` family.

    Args:
        logger (structlog.stdlib.BoundLogger): The logger instance to use.
        error (Exception): The exception to log.
        message (Optional[str], optional): Custom message. Defaults to "An error occurred".
        extra (Optional[Dict[str, Any]], optional): Additional context to log.
    """
    context = dict(extra or {})
    context["error_type"] = error.__class__.__name__
    context["error_message"] = str(error)

    if hasattr(error, "details"):
        context["error_details"] = error.details

    logger.error(message or "An error occurred", **context, exc_info=error)
