"""
Logging configuration for the application.
Uses structlog for structured logging (JSON in production, colorful in dev).
"""

import logging
import sys
from typing import Any

import structlog
from asgi_correlation_id import correlation_id

from pdv.config import get_settings

settings = get_settings()


def add_correlation_id(logger, method_name, event_dict):
    request_id = correlation_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def configure_logging() -> None:
    """Configure structured logging."""
    shared_processors: list[Any] = [
        add_correlation_id,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    production = settings.ENVIRONMENT == "production"
    renderer = structlog.processors.JSONRenderer() if production else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter_processors: list[Any] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if production:
        # JSON logs carry the traceback as a string field
        formatter_processors.append(structlog.processors.format_exc_info)
    formatter_processors.append(renderer)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=formatter_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.LOG_LEVEL.upper())
