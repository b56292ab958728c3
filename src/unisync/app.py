"""Application wiring: storage, registry and orchestrator."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from unisync.adapters.registry_source import load_registry
from unisync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, startup
from unisync.config import get_registry_config, get_sync_config
from unisync.domain.audit import AuditLog
from unisync.domain.schema import RegistryProvider
from unisync.domain.sync import SyncOrchestrator

if TYPE_CHECKING:
    from pathlib import Path

    import httpx
    from sqlalchemy.engine import Engine

    from unisync.config import SyncConfig
    from unisync.domain.schema import SchemaRegistry

log = getLogger(__name__)


def build_orchestrator(
    *,
    registry: SchemaRegistry | None = None,
    registry_source: str | Path | None = None,
    engine: Engine | None = None,
    database_uri: str | None = None,
    sync_config: SyncConfig | None = None,
    http_client: httpx.Client | None = None,
) -> SyncOrchestrator:
    """Start storage, load the registry and return a ready orchestrator.

    An invalid registry raises before any storage work is done, so a
    misconfigured process never starts serving.
    """

    if registry is None:
        registry_config = get_registry_config()
        registry = load_registry(
            registry_source or registry_config.source,
            client=http_client,
            timeout=registry_config.fetch_timeout_seconds,
        )

    startup(engine=engine, database_uri=database_uri, force=True)
    provider = RegistryProvider(registry)
    orchestrator = SyncOrchestrator(
        provider,
        SqlAlchemyUnitOfWork,
        audit_log=AuditLog(SqlAlchemyUnitOfWork),
        config=sync_config or get_sync_config(),
    )
    log.info(
        "Sync orchestrator ready: systems=%s",
        ", ".join(summary.name for summary in registry.supported_systems()),
    )
    return orchestrator


def reload_registry(
    provider: RegistryProvider,
    source: str | Path,
    *,
    http_client: httpx.Client | None = None,
) -> SchemaRegistry:
    """Load ``source`` and swap it in; the active registry stays if loading fails."""

    registry = load_registry(
        source,
        client=http_client,
        timeout=get_registry_config().fetch_timeout_seconds,
    )
    provider.swap(registry)
    return registry
