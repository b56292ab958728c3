"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_int_env, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import AUDIT_FALLBACK_LOGGER, configure_logging, resolve_log_level
from .registry import RegistryConfig, get_registry_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "AUDIT_FALLBACK_LOGGER",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RegistryConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_registry_config",
    "get_storage_config",
    "get_sync_config",
    "optional_int_env",
    "require_env_var",
    "require_env_vars",
    "resolve_log_level",
]
