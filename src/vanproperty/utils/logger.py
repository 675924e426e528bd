"""
Logging Configuration

structlog on top of the standard library logger. Every entry carries the
deployment environment and, inside a request, the request id bound by the
API middleware.
"""
import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from config.settings import settings

_configured = False


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp the service name and environment on every entry."""
    event_dict["service"] = "vanproperty"
    event_dict["environment"] = settings.environment
    return event_dict


def _renderer() -> list[Processor]:
    if settings.log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.processors.ExceptionRenderer(), structlog.dev.ConsoleRenderer()]


def setup_logging(force: bool = False) -> structlog.BoundLogger:
    """
    Configure structured logging for the application.

    Safe to call more than once; later calls are no-ops unless ``force`` is set.

    Returns:
        Root structlog logger
    """
    global _configured
    if _configured and not force:
        return structlog.get_logger()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        *_renderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True

    return structlog.get_logger()


def bind_request_context(**values: Any) -> None:
    """Attach key/values to every log entry emitted during the current request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = None) -> structlog.BoundLogger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Bound structlog logger
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()
