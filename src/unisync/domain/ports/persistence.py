"""Ports for persisting canonical entities, mapping records and audit entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from unisync.domain.model import (
        CanonicalEntity,
        EntityIdentity,
        EntityMapping,
        NormalizedRecord,
        SyncLogEntry,
        SyncStatus,
    )


@dataclass(frozen=True, slots=True)
class EntityQuery:
    """Filters for listing canonical entities; ``None`` means "any"."""

    canonical_type: str | None = None
    source_system: str | None = None
    sync_status: SyncStatus | None = None
    is_active: bool | None = None
    limit: int | None = None
    offset: int = 0


@dataclass(frozen=True, slots=True)
class GroupCount:
    """Row count for one combination of grouping keys."""

    key: tuple[Any, ...]
    count: int


@runtime_checkable
class CanonicalEntityRepository(Protocol):
    """Persistence contract for canonical entities (natural-key upsert)."""

    def upsert(self, record: NormalizedRecord, *, synced_at: datetime) -> CanonicalEntity:
        """Atomically insert or fully replace the entity with ``record.identity``."""
        ...

    def get(self, entity_id: UUID) -> CanonicalEntity | None: ...

    def get_by_identity(self, identity: EntityIdentity) -> CanonicalEntity | None: ...

    def query(self, query: EntityQuery) -> Sequence[CanonicalEntity]: ...

    def count(self) -> int: ...

    def count_by(self, *columns: str) -> Sequence[GroupCount]: ...


@runtime_checkable
class EntityMappingRepository(Protocol):
    """Persistence contract for mapping records, unique per (entity, target)."""

    def upsert(
        self,
        *,
        entity_id: UUID,
        target_system: str,
        target_entity_type: str,
        target_data: dict[str, Any],
        projected_at: datetime,
    ) -> EntityMapping:
        """Atomically insert or replace the mapping payload and reset it to pending."""
        ...

    def get(self, mapping_id: UUID) -> EntityMapping | None: ...

    def list_for_entity(self, entity_id: UUID) -> Sequence[EntityMapping]: ...

    def count(self) -> int: ...

    def count_by(self, *columns: str) -> Sequence[GroupCount]: ...


@runtime_checkable
class SyncLogRepository(Protocol):
    """Append-only persistence for audit entries."""

    def add(self, entry: SyncLogEntry) -> None: ...

    def recent_for_entity(self, entity_id: UUID, *, limit: int) -> Sequence[SyncLogEntry]: ...

    def count(self) -> int: ...

    def count_by(self, *columns: str) -> Sequence[GroupCount]: ...
