"""Structured logging configuration for the essence engine.

Engine modules log through structlog as key/value events (trait equips,
registry loads, combat actions). Events are handed to the stdlib
``essence_engine`` logger and rendered by a ProcessorFormatter, so the same
event reaches the console and an optional log file in one format.

Example:
    >>> from essence_engine.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=True)
    >>> get_logger(__name__).info("Trait equipped", trait_id="BattleHardened", slot_index=0)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from essence_engine.core.config import Settings


ENGINE_LOGGER_NAME = "essence_engine"


def add_engine_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag an event with the engine name unless it already carries one."""
    event_dict.setdefault("engine", ENGINE_LOGGER_NAME)
    return event_dict


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_engine_context,
    ]


def _renderers(json_format: bool) -> list[Processor]:
    if json_format:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Route engine events to stderr and, optionally, a file.

    Only the ``essence_engine`` stdlib logger is configured; the host
    application's root logger is left alone.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Render one JSON object per line instead of console text.
        log_file: Extra file that receives the same rendered events.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    pre_chain = _pre_chain()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_renderers(json_format),
        ],
    )
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    engine_logger = logging.getLogger(ENGINE_LOGGER_NAME)
    for old in list(engine_logger.handlers):
        engine_logger.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        engine_logger.addHandler(handler)
    engine_logger.setLevel(numeric_level)
    engine_logger.propagate = False

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(settings: Settings | None = None) -> None:
    """Configure logging from ``log_level``, ``debug`` and ``json_logs`` in the settings."""
    if settings is None:
        from essence_engine.core.config import get_settings

        settings = get_settings()
    configure_logging(level=settings.effective_log_level, json_format=settings.json_logs)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger; pass ``__name__`` so events nest under ``essence_engine``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach values, e.g. ``encounter_id``, to every later event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "ENGINE_LOGGER_NAME",
    "add_engine_context",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
