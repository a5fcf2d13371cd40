"""Structured logging for Progresstrack.

structlog renders every event; stdlib logging only supplies the handler
(stdout or a size-rotated file). Events carry manhour figures as ``Decimal``
and identifiers as ``UUID``, so a processor turns those into plain strings
before rendering. Request handlers and services bind the project, budget and
component they are working on so that every line in between is attributable.

Usage:
    >>> setup_logging(LoggingConfig(format="console"))
    >>> bind_project_context(project_id, budget_id=budget.id)
    >>> get_logger(__name__).info("budget_distributed", total_allocated=Decimal("999.99"))
"""

from __future__ import annotations

import contextvars
import enum
import logging
import logging.handlers
import sys
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog

from progresstrack.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Loggers whose output duplicates our own events.
_QUIET_LOGGERS = ("uvicorn.access",)


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor adding the request correlation id, when one is set."""
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


def render_domain_values(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor turning hours, ids, enums and dates into strings.

    Decimals keep their exact scale (``"7.00"``), which a float conversion
    would lose.
    """
    return {key: _plain(value) for key, value in event_dict.items()}


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID for current context."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return _correlation_id.get()


def bind_project_context(project_id: UUID | str, budget_id: UUID | str | None = None) -> None:
    """Bind project (and optionally budget version) ids to subsequent logs.

    Args:
        project_id: Project whose budget or components are being worked on
        budget_id: Budget version in play, if already known
    """
    values: dict[str, str] = {"project_id": str(project_id)}
    if budget_id is not None:
        values["budget_id"] = str(budget_id)
    structlog.contextvars.bind_contextvars(**values)


def bind_component_context(component_id: UUID | str) -> None:
    """Bind a component id to subsequent logs (milestone updates)."""
    structlog.contextvars.bind_contextvars(component_id=str(component_id))


def clear_request_context() -> None:
    """Drop the correlation id and every bound project/budget/component id."""
    set_correlation_id(None)
    structlog.contextvars.clear_contextvars()


def _build_handler(config: LoggingConfig) -> logging.Handler:
    if config.file is None:
        return logging.StreamHandler(sys.stdout)

    config.file.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=config.file,
        maxBytes=config.rotation_size_mb * 1024 * 1024,
        backupCount=config.retention_count,
        encoding="utf-8",
    )


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog and the root handler from ``config``.

    Replaces any handlers already on the root logger, so calling it twice
    (CLI callback, then ``serve``) does not duplicate output.
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = _build_handler(config)
    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    if config.format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            render_domain_values,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)
