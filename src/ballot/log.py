"""structlog configuration for the ballot CLI and embedding hosts."""

from __future__ import annotations

import logging
import sys

import structlog


def _stderr_logger(*args: object) -> structlog.PrintLogger:
    # Resolved per logger so a replaced sys.stderr is honoured.
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(level: str = "WARNING", json_output: bool = False) -> None:
    """Route structlog output to stderr at the given level.

    Unknown level names fall back to WARNING.
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    renderer = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
