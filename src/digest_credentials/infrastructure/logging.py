"""Shared logging configuration helpers for credential processes."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_log_level(level: str) -> int:
    """Map a level name to a `logging` constant, falling back to INFO."""

    normalized_level = level.strip().upper() if level.strip() else "INFO"
    resolved_level = getattr(logging, normalized_level, logging.INFO)
    if not isinstance(resolved_level, int):
        return logging.INFO
    return resolved_level


def configure_logging(*, level: str) -> None:
    """Configure process logging with consistent format and runtime level."""

    logging.basicConfig(
        level=resolve_log_level(level),
        format=_LOG_FORMAT,
    )
    # Engine echo would print bound parameters, which include password digests.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
