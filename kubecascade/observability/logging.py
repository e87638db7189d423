"""Structured logging configuration using structlog.

Every event is a JSON line on stderr, so CLI output on stdout stays
machine-readable. A deletion attempt binds its target and token into the
structlog context; adapters called during the attempt inherit both.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager
from typing import TextIO

import structlog

_VALID_LEVELS = frozenset({"debug", "info", "warning", "error"})


def setup_logging(level: str = "info", stream: TextIO | None = None) -> None:
    """Configure structlog JSON output filtered at ``level``.

    Unknown level names fall back to info.
    """
    name = level.lower() if level.lower() in _VALID_LEVELS else "info"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, name.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


def deletion_context(target: str, token: str) -> AbstractContextManager[None]:
    """Bind ``target`` and ``token`` to every event logged inside the block."""
    return structlog.contextvars.bound_contextvars(deletion_target=target, deletion_token=token)
