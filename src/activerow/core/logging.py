"""
Structured logging for activerow.

activerow logs through structlog.  Library modules only ever call
``get_logger(__name__)``; applications opt in to a renderer with
``configure_logging()`` (or ``activerow.configure()``, which reads
``ACTIVEROW_LOG_LEVEL`` / ``ACTIVEROW_LOG_JSON``).

Architecture:
    ::

        Configuration Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ configure_logging(level="INFO", json_format=True,          │
        │                   service="orders-api")                    │
        │     ↓                                                       │
        │ structlog configured with processor chain:                  │
        │   1. TimeStamper (iso)                                      │
        │   2. add_log_level                                          │
        │   3. _add_service_metadata                                  │
        │   4. JSONRenderer (or ConsoleRenderer for dev)              │
        └────────────────────────────────────────────────────────────┘

        Events emitted by activerow:
        ┌────────────────────────────────────────────────────────────┐
        │ metadata_registered   debug  entity, table, id_column      │
        │ statement_executed    debug  sql, params (count), rows     │
        │ record_not_found      info   table, operation              │
        │ adapter_connected     debug  backend                       │
        └────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Log parameter values (they are user data)
    ✅ DO: Log SQL text and parameter counts

Examples:
    >>> from activerow.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("statement_executed", sql="SELECT 1", params=0)

Tags:
    logging, structlog, observability, activerow
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "activerow"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "activerow",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

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
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

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
    """Get a structured logger (usually ``get_logger(__name__)``).

    The name is bound lazily as ``logger_name`` so module-level loggers pick
    up whatever ``configure_logging()`` sets later.
    """
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(logger_name=name)


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(entity="User", operation="create"):
            user.create()
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args) -> None:
        structlog.contextvars.unbind_contextvars(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "LogContext",
]
