"""
Structured logging configuration using structlog.

Console output in development, JSON everywhere else. Registry and signature
operations bind their scope (owner, template, signer, map) through
``operation_context`` so every event emitted while a step runs carries it.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, cast

import structlog
from structlog.types import Processor

from mapauth.core.config import get_settings


def configure_logging() -> None:
    """Configure structlog and route stdlib logging through stdout."""
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.environment == "development":
        renderers: list[Processor] = [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=shared_processors + renderers,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )
    # redis-py logs every reconnect at INFO; keep it out of request logs
    logging.getLogger("redis").setLevel(max(logging.WARNING, logging.root.level))


@contextmanager
def operation_context(operation: str, **scope: Any) -> Iterator[None]:
    """Bind ``operation`` and its scope keys to all events logged inside the block."""
    with structlog.contextvars.bound_contextvars(operation=operation, **scope):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance with the given name."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
