"""Synchronization defaults for the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_int_env
from .errors import ConfigurationError

DEFAULT_FANOUT_WORKERS = 4
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 1000
DEFAULT_RECENT_LOG_LIMIT = 5


@dataclass(frozen=True, slots=True)
class SyncConfig:
    fanout_workers: int = DEFAULT_FANOUT_WORKERS
    default_query_limit: int = DEFAULT_QUERY_LIMIT
    max_query_limit: int = MAX_QUERY_LIMIT
    recent_log_limit: int = DEFAULT_RECENT_LOG_LIMIT

    def __post_init__(self) -> None:
        if self.fanout_workers < 1:
            raise ConfigurationError("fanout_workers must be at least 1")
        if not 0 < self.default_query_limit <= self.max_query_limit:
            raise ConfigurationError("default_query_limit must be within (0, max_query_limit]")


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        fanout_workers=optional_int_env("UNISYNC_FANOUT_WORKERS", DEFAULT_FANOUT_WORKERS),
    )
