"""Where the schema registry document comes from."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .storage import StorageConfig, get_storage_config

REGISTRY_FETCH_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Location of the registry document: a filesystem path or an HTTP(S) URL."""

    source: str
    fetch_timeout_seconds: float = REGISTRY_FETCH_TIMEOUT_SECONDS

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(("http://", "https://"))


def get_registry_config(*, storage: StorageConfig | None = None) -> RegistryConfig:
    env_source = os.getenv("UNISYNC_REGISTRY_SOURCE")
    if env_source and env_source.strip():
        return RegistryConfig(source=env_source.strip())
    storage_config = storage or get_storage_config()
    return RegistryConfig(source=str(storage_config.registry_path()))
