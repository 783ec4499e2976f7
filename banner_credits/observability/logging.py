"""
Structured Logging with Structlog.

JSON logs carrying the service, version and ledger backend on every
entry, plus the request id bound by the HTTP middleware. Generated
images travel as base64 data URLs; those are cut down before rendering
so a logged payload never carries a whole image.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from banner_credits.config import settings

# Data URLs longer than this are shortened in log entries
MAX_LOGGED_DATA_URL = 64


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add service, version and ledger backend to all log entries."""
    event_dict["service"] = settings.service_name
    event_dict["version"] = settings.api_version
    event_dict["ledger_backend"] = settings.ledger_backend
    return event_dict


def truncate_data_urls(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Shorten `data:` URL values, keeping the media type prefix."""
    for key, value in event_dict.items():
        if isinstance(value, str) and value.startswith("data:") and len(value) > MAX_LOGGED_DATA_URL:
            event_dict[key] = f"{value[:MAX_LOGGED_DATA_URL]}...({len(value)} chars)"
    return event_dict


def setup_logging() -> None:
    """
    Configure structured logging with structlog.

    JSON entries look like:
    {
        "event": "credits_reserved",
        "level": "info",
        "timestamp": "2026-01-08T12:00:00.123456Z",
        "logger": "banner_credits.services.ledger",
        "service": "banner-credits-api",
        "version": "0.1.0",
        "ledger_backend": "postgres",
        "request_id": "req-123",
        "email": "user@example.com",
        "balance_after": 4
    }
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        truncate_data_urls,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger bound to `name`."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class log_context:
    """
    Bind context variables for the duration of a block.

    Usage:
        with log_context(request_id="req-123"):
            logger.info("credits_reserved")
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs

    def __enter__(self) -> None:
        structlog.contextvars.bind_contextvars(**self.context)

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())
