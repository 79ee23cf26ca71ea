"""
Structured logging for rowgraph.

Every module obtains its logger through :func:`get_logger` and logs
snake_case event names with key/value context::

    logger = get_logger(__name__)
    logger.debug("lookup_group_opened", label="customer_id", table="customers")

Applications call :func:`configure_logging` once at startup. Until they do,
structlog's defaults apply (console rendering, all levels).

Architecture:
    ::

        configure_logging(level=None, json_format=None, service="rowgraph")
            │  level=None reads RowGraphSettings().log_level
            │
            ▼
        structlog processor chain:
          1. TimeStamper(iso)
          2. merge_contextvars      ← LogContext(pass_id=..., entity=...)
          3. add_log_level
          4. add_service_metadata
          5. JSONRenderer | ConsoleRenderer

Examples:
    >>> from rowgraph.core.logging import configure_logging, get_logger, LogContext
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> with LogContext(entity="Order"):
    ...     logger.info("pass_started", rows=3)

Tags:
    logging, structlog, observability, rowgraph
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from rowgraph.core.settings import RowGraphSettings

_SERVICE_NAME = "rowgraph"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
    service: str = "rowgraph",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); defaults to
            ``RowGraphSettings().log_level`` (env ``ROWGRAPH_LOG_LEVEL``)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if level is None:
        level = RowGraphSettings().log_level

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(entity="Order", pass_id="a1b2"):
            logger.info("pass_started")
        # Context cleared here
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
