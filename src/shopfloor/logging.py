"""Structured logging for Shopfloor webhooks.

Delivery code logs through structlog. The dispatcher binds ``event_type``
for the length of a trigger and the delivery engine binds ``endpoint_id``
and ``delivery_id`` on its logger, so every line of one delivery can be
correlated in the JSON output.

httpx logs each request at INFO; the delivery engine already logs every
attempt, so the HTTP client loggers are held at WARNING unless DEBUG is
requested.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from structlog.typing import Processor

HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")

_configured = False


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderers(format: str) -> list[Processor]:
    if format.lower() == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(level: str = "INFO", format: str = "json") -> None:
    """Configure structlog and the standard library root logger.

    Safe to call more than once; the app lifespan calls it with the
    configured ``log_level`` and ``log_format``.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Unknown names
            fall back to INFO.
        format: "json" for deployments, "text" for a local console.
    """
    global _configured

    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    client_level = log_level if log_level <= logging.DEBUG else max(log_level, logging.WARNING)
    for name in HTTP_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    structlog.configure(
        processors=[*_shared_processors(), *_renderers(format)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, applying the default configuration on first use.

    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Webhook delivered", endpoint_id="whk_erp", latency_ms=84)
        ```
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_context(**kwargs: object) -> None:
    """Attach key/values to every log line of the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)
