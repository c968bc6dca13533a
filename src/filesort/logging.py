"""Structured logging configuration for filesort.

This module provides structlog-based logging with:
- Pretty console output on stderr (default)
- JSON output when FILESORT_LOG_FORMAT=json
- Level taken from FILESORT_LOG_LEVEL, the CLI verbosity flags, or config

Usage:
    from filesort.logging import get_logger, configure_logging

    configure_logging()

    log = get_logger(__name__).bind(resource="inbox/report.pdf")
    log.warning("render_failed", error="undefined variable 'year'")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "get_logger",
    "configure_logging",
    "level_for_verbosity",
    "bind_context",
    "clear_context",
]

LOG_FORMAT_ENV_VAR = "FILESORT_LOG_FORMAT"

LOG_LEVEL_ENV_VAR = "FILESORT_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "WARNING"

_VERBOSITY_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def _level_from_env() -> int:
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.WARNING)


def _json_requested() -> bool:
    return os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"


def _shared_processors() -> list[Processor]:
    """Processors applied to both structlog and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _rendering_processors(use_json: bool) -> list[Processor]:
    if use_json:
        return [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def level_for_verbosity(verbosity: str) -> int:
    """Map a configured verbosity name to a logging level.

    Args:
        verbosity: One of "error", "warning", "info" or "debug".

    Returns:
        The matching ``logging`` level, WARNING for unknown names.
    """
    return _VERBOSITY_LEVELS.get(verbosity.lower(), logging.WARNING)


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Call once at startup; calling again reconfigures (tests rely on this).
    Output always goes to stderr so rendered templates on stdout stay clean.

    Args:
        force_json: Emit JSON lines regardless of FILESORT_LOG_FORMAT.
        level: Explicit log level. If None, FILESORT_LOG_LEVEL is used.
    """
    use_json = force_json or _json_requested()
    log_level = level if level is not None else _level_from_env()

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_rendering_processors(use_json),
            ],
            foreign_pre_chain=_shared_processors(),
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name. If None, structlog picks the caller's module.

    Returns:
        A bound structlog logger.
    """
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Bind context variables included in every subsequent log record.

    Uses structlog's contextvars, so bindings made inside a worker thread
    stay local to that thread.

    Args:
        **context: Key-value pairs to bind to log context.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context(*keys: str) -> None:
    """Remove bound context variables.

    Args:
        *keys: Names to unbind. With no names, all bindings are cleared.
    """
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()
