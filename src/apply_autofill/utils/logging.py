"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any, Dict

import structlog
from rich.logging import RichHandler

from apply_autofill.config import settings


def configure_logging() -> None:
    """Configure structured logging with rich output."""

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
        handlers=[RichHandler(rich_tracebacks=True, markup=True)],
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper())
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def log_fill_context(url: str, form: Any, options: Any) -> Dict[str, Any]:
    """Create a log context for a fill session."""
    fields = getattr(form, "fields", {}) or {}
    return {
        "fill_session": {
            "url": url,
            "form_action": getattr(form, "action_url", ""),
            "field_count": len(fields),
            "required_count": sum(1 for field in fields.values() if field.required),
            "options": options.model_dump() if hasattr(options, "model_dump") else options,
        }
    }
