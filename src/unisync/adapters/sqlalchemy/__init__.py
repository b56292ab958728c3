"""SQLAlchemy adapter package for unisync."""

from __future__ import annotations

from .mappings import (
    canonical_entity_table,
    entity_mapping_table,
    mapper_registry,
    start_mappers,
    sync_log_table,
)
from .repositories import (
    SqlAlchemyCanonicalEntityRepository,
    SqlAlchemyEntityMappingRepository,
    SqlAlchemySyncLogRepository,
)
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCanonicalEntityRepository",
    "SqlAlchemyEntityMappingRepository",
    "SqlAlchemySyncLogRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "build_engine",
    "canonical_entity_table",
    "configured_engine",
    "entity_mapping_table",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "sync_log_table",
]
