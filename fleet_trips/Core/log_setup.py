"""Structured logging configuration for the ingest service."""

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: str = "info", fmt: str = "console") -> None:
    """
    Configure structlog once at process startup.

    Args:
        level: Minimum level name ('debug', 'info', 'warning', 'error')
        fmt: 'console' for colored human output, 'json' for log shippers
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    # Standard library logging carries third-party output (aiokafka, paho, uvicorn)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if fmt == "json":
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a structured logger instance (name is typically __name__)."""
    return structlog.get_logger(name)
