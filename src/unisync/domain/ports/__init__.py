"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    CanonicalEntityRepository,
    EntityMappingRepository,
    EntityQuery,
    GroupCount,
    SyncLogRepository,
)
from .unit_of_work import RepositoryCollection, SyncRepositories, SyncUnitOfWork, UnitOfWork

__all__ = [
    "CanonicalEntityRepository",
    "EntityMappingRepository",
    "EntityQuery",
    "GroupCount",
    "RepositoryCollection",
    "SyncLogRepository",
    "SyncRepositories",
    "SyncUnitOfWork",
    "UnitOfWork",
]
