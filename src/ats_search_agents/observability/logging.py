"""structlog setup and run/platform log context."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from structlog.contextvars import (
    bind_contextvars,
    bound_contextvars,
    clear_contextvars,
    merge_contextvars,
)

if TYPE_CHECKING:
    from ats_search_core.config.settings import Settings

# Chatty at INFO/DEBUG: one line per request or SQL statement
_NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "redis")


def _shared_processors() -> list[structlog.types.Processor]:
    """Processors applied to structlog and foreign stdlib records alike."""
    return [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(settings: Settings) -> None:
    """Route structlog and stdlib logging through one root handler.

    Every record, including those from httpx and SQLAlchemy, passes
    through the same processors and is rendered as JSON or console text
    according to ``settings.log_format``.
    """
    shared = _shared_processors()
    level = _resolve_level(settings.log_level)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings.log_format),
            ],
            foreign_pre_chain=shared,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_run_context(run_id: str, cache_key: str | None = None) -> None:
    """Bind run_id (and the request's cache key) to all subsequent log entries."""
    if cache_key is None:
        bind_contextvars(run_id=run_id)
    else:
        bind_contextvars(run_id=run_id, cache_key=cache_key)


@contextmanager
def platform_context(platform: str) -> Iterator[None]:
    """Tag log entries emitted while searching one platform."""
    with bound_contextvars(platform=platform):
        yield


def clear_run_context() -> None:
    """Clear all bound context variables."""
    clear_contextvars()


def _resolve_level(level_name: str) -> int:
    """Convert a level name such as ``"debug"`` to a logging level int."""
    return logging.getLevelNamesMapping().get(level_name.upper(), logging.INFO)
