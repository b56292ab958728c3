"""Shared logging helpers."""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError

AUDIT_FALLBACK_LOGGER = "unisync.audit.fallback"
LOG_LEVEL_ENV = "UNISYNC_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_log_level(level: int | str | None = None) -> int:
    """Turn a level number or name into a number; ``None`` reads ``UNISYNC_LOG_LEVEL``."""

    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "").strip() or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        raise ConfigurationError(f"Unknown log level {level!r}")
    return resolved


def configure_logging(*, level: int | str | None = None, force: bool = False) -> int:
    """Initialise the root logger for a service process and return the level used.

    Audit entries that could not be stored are logged at ERROR on
    ``unisync.audit.fallback``, so they survive any level up to ERROR. Pass
    ``force=True`` to reconfigure an already initialised root logger.
    """

    resolved = resolve_log_level(level)
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        force=force,
    )
    return resolved
