"""Structured logging configuration with correlation IDs."""

import logging
import sys
from contextvars import ContextVar
from uuid import uuid4

import orjson
import structlog

from content_generation.config import get_settings

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")


def add_context_vars(logger, method_name, event_dict):
    """Add context variables to log events."""
    if request_id := request_id_var.get():
        event_dict["request_id"] = request_id
    if user_id := user_id_var.get():
        event_dict["user_id"] = user_id
    return event_dict


def _orjson_dumps(obj, default=None, **kwargs) -> str:
    return orjson.dumps(obj, default=default).decode()


def setup_logging(level: str | None = None, format: str | None = None) -> None:
    """Configure structlog on top of stdlib logging."""
    settings = get_settings()
    log_level = (level or settings.log_level).upper()
    log_format = format or settings.log_format

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(serializer=_orjson_dumps))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level, logging.INFO),
    )

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class RequestContext:
    """Context manager binding request-scoped logging context."""

    def __init__(self, request_id: str | None = None, user_id: str | None = None):
        self.request_id = request_id or str(uuid4())
        self.user_id = user_id
        self.tokens = []

    def __enter__(self):
        self.tokens.append((request_id_var, request_id_var.set(self.request_id)))
        if self.user_id:
            self.tokens.append((user_id_var, user_id_var.set(self.user_id)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for var, token in reversed(self.tokens):
            var.reset(token)
        self.tokens.clear()
        return False
