"""Logging utilities for connection flows."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

LOG_FORMATS = ("json", "console")


def configure_logging(level: str = "INFO", *, fmt: str = "json") -> None:
    """Configure structlog on stderr, leaving stdout to the interactive prompts.

    ``fmt`` is ``json`` for machine-readable lines or ``console`` for a
    human-readable rendering. Context bound with :func:`bind_command` is
    merged into every event.
    """
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Unsupported log format: {fmt!r}")
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stderr)

    renderer: Any
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def bind_command(command: str, **context: Any) -> None:
    """Tag subsequent events with the CLI command that produced them."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(command=command, **context)
