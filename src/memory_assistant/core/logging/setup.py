"""Centralized logging setup with Logfire integration.

Logfire itself is configured in ``main.py`` via environment variables
(``LOGFIRE_TOKEN``, ``LOGFIRE_SERVICE_NAME``, ``LOGFIRE_ENVIRONMENT``).
"""

import logging
import sys
from typing import Any

import logfire
import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.types import EventDict, Processor, WrappedLogger
from structlog.typing import FilteringBoundLogger


def add_logfire_context(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add Logfire-specific context to log events."""
    if "error" in event_dict and isinstance(event_dict["error"], BaseException):
        event_dict["error_type"] = type(event_dict["error"]).__name__
        event_dict["error"] = str(event_dict["error"])

    return event_dict


def setup_logging(level: int = logging.INFO) -> None:
    """Set up application-wide logging with Logfire and structlog integration."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.FILENAME,
                CallsiteParameter.LINENO,
                CallsiteParameter.FUNC_NAME,
            ]
        ),
        add_logfire_context,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        # Must come before the final renderer
        logfire.StructlogProcessor(),
        structlog.dev.ConsoleRenderer(colors=True),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        # PrintLogger avoids double logging through the standard library
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # Standard library records (uvicorn, neo4j, httpx) go through the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=True),
        foreign_pre_chain=processors[:-2],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structured logger instance that's properly configured with Logfire.

    Args:
        name: The name of the logger (usually __name__)

    Returns:
        A configured structlog logger instance
    """
    return structlog.get_logger(name)


def bind_request_context(**context: Any) -> None:
    """Bind request-scoped fields (owner, conversation) to every later log event."""
    structlog.contextvars.bind_contextvars(**{k: v for k, v in context.items() if v is not None})


def clear_request_context() -> None:
    """Drop all request-scoped log fields."""
    structlog.contextvars.clear_contextvars()
