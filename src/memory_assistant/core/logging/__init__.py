"""Structured logging module.

structlog loggers routed through logfire. Request-scoped fields are bound
with :mod:`structlog.contextvars` and merged into every event.
"""

from .setup import bind_request_context, clear_request_context, get_logger, setup_logging

__all__ = [
    "bind_request_context",
    "clear_request_context",
    "get_logger",
    "setup_logging",
]
