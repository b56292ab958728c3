"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite

from unisync.adapters.sqlalchemy.mappings import (
    canonical_entity_table,
    entity_mapping_table,
    sync_log_table,
)
from unisync.domain.model import (
    CanonicalEntity,
    EntityMapping,
    SyncLogEntry,
    SyncStatus,
    new_id,
)
from unisync.domain.ports import GroupCount

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy import Table
    from sqlalchemy.orm import Session

    from unisync.domain.model import EntityIdentity, NormalizedRecord
    from unisync.domain.ports import EntityQuery

_UPSERT_DIALECTS: Final = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}

_ENTITY_NATURAL_KEY: Final = ("source_system", "source_entity_type", "source_entity_id")
_ENTITY_REPLACED_COLUMNS: Final = (
    "canonical_type",
    "core_data",
    "extended_data",
    "raw_data",
    "cleared_fields",
    "sync_status",
    "last_synced_at",
    "sync_error",
    "updated_at",
)
_MAPPING_NATURAL_KEY: Final = ("entity_id", "target_system", "target_entity_type")
_MAPPING_REPLACED_COLUMNS: Final = (
    "target_data",
    "sync_status",
    "last_projected_at",
    "delivery_error",
    "updated_at",
)


class _SessionRepository:
    """Shared helpers for counting, grouping and dialect-aware upserts."""

    table: Table
    groupable: frozenset[str]

    def __init__(self, session: Session) -> None:
        self.session = session

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.table)
        return int(self.session.execute(stmt).scalar_one())

    def count_by(self, *columns: str) -> list[GroupCount]:
        unknown = [name for name in columns if name not in self.groupable]
        if not columns or unknown:
            raise ValueError(
                f"Cannot group {self.table.name} by {list(columns)}; "
                f"allowed columns: {sorted(self.groupable)}"
            )
        selected = [self.table.c[name] for name in columns]
        stmt = select(*selected, func.count()).group_by(*selected).order_by(*selected)
        return [
            GroupCount(key=tuple(row[:-1]), count=int(row[-1]))
            for row in self.session.execute(stmt).all()
        ]

    def _atomic_upsert(
        self,
        values: dict[str, Any],
        *,
        conflict_columns: Iterable[str],
        replaced_columns: Iterable[str],
    ) -> bool:
        """Run a single-statement insert-or-update; return False if the dialect lacks one."""

        insert = _UPSERT_DIALECTS.get(self.session.get_bind().dialect.name)
        if insert is None:
            return False
        stmt = insert(self.table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_={name: stmt.excluded[name] for name in replaced_columns},
        )
        self.session.execute(stmt)
        return True


class SqlAlchemyCanonicalEntityRepository(_SessionRepository):
    table = canonical_entity_table
    groupable = frozenset({"canonical_type", "source_system", "sync_status", "is_active"})

    def upsert(self, record: NormalizedRecord, *, synced_at: datetime) -> CanonicalEntity:
        identity = record.identity
        values: dict[str, Any] = {
            "id": new_id(),
            "source_system": identity.source_system,
            "source_entity_type": identity.source_entity_type,
            "source_entity_id": identity.source_entity_id,
            "canonical_type": record.canonical_type,
            "core_data": dict(record.core_data),
            "extended_data": dict(record.extended_data) or None,
            "raw_data": record.raw_data,
            "cleared_fields": list(record.cleared_fields),
            "sync_status": SyncStatus.SYNCED,
            "last_synced_at": synced_at,
            "sync_error": None,
            "is_active": True,
            "created_at": synced_at,
            "updated_at": synced_at,
        }
        if self._atomic_upsert(
            values,
            conflict_columns=_ENTITY_NATURAL_KEY,
            replaced_columns=_ENTITY_REPLACED_COLUMNS,
        ):
            entity = self._fetch_by_identity(identity, refresh=True)
            if entity is None:  # pragma: no cover - the row was just written
                raise LookupError(f"Upserted entity {identity} could not be reloaded")
            return entity

        entity = self.get_by_identity(identity)
        if entity is None:
            entity = CanonicalEntity.from_record(record, synced_at=synced_at)
            self.session.add(entity)
        else:
            entity.replace_with(record, synced_at=synced_at)
        self.session.flush()
        return entity

    def get(self, entity_id: UUID) -> CanonicalEntity | None:
        return self.session.get(CanonicalEntity, entity_id)

    def get_by_identity(self, identity: EntityIdentity) -> CanonicalEntity | None:
        return self._fetch_by_identity(identity, refresh=False)

    def query(self, query: EntityQuery) -> list[CanonicalEntity]:
        columns = canonical_entity_table.c
        stmt = select(CanonicalEntity)
        if query.canonical_type is not None:
            stmt = stmt.where(columns.canonical_type == query.canonical_type)
        if query.source_system is not None:
            stmt = stmt.where(columns.source_system == query.source_system)
        if query.sync_status is not None:
            stmt = stmt.where(columns.sync_status == query.sync_status)
        if query.is_active is not None:
            stmt = stmt.where(columns.is_active == query.is_active)
        stmt = stmt.order_by(columns.created_at.desc(), columns.id).offset(query.offset)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        return list(self.session.execute(stmt).scalars().all())

    def _fetch_by_identity(
        self, identity: EntityIdentity, *, refresh: bool
    ) -> CanonicalEntity | None:
        columns = canonical_entity_table.c
        stmt = (
            select(CanonicalEntity)
            .where(columns.source_system == identity.source_system)
            .where(columns.source_entity_type == identity.source_entity_type)
            .where(columns.source_entity_id == identity.source_entity_id)
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyEntityMappingRepository(_SessionRepository):
    table = entity_mapping_table
    groupable = frozenset({"target_system", "target_entity_type", "sync_status"})

    def upsert(
        self,
        *,
        entity_id: UUID,
        target_system: str,
        target_entity_type: str,
        target_data: dict[str, Any],
        projected_at: datetime,
    ) -> EntityMapping:
        values: dict[str, Any] = {
            "id": new_id(),
            "entity_id": entity_id,
            "target_system": target_system,
            "target_entity_type": target_entity_type,
            "target_data": target_data,
            "sync_status": SyncStatus.PENDING,
            "last_projected_at": projected_at,
            "delivery_error": None,
            "created_at": projected_at,
            "updated_at": projected_at,
        }
        if self._atomic_upsert(
            values,
            conflict_columns=_MAPPING_NATURAL_KEY,
            replaced_columns=_MAPPING_REPLACED_COLUMNS,
        ):
            mapping = self._fetch(entity_id, target_system, target_entity_type, refresh=True)
            if mapping is None:  # pragma: no cover - the row was just written
                raise LookupError(
                    f"Upserted mapping {entity_id} -> {target_system}/{target_entity_type} "
                    "could not be reloaded"
                )
            return mapping

        mapping = self._fetch(entity_id, target_system, target_entity_type, refresh=False)
        if mapping is None:
            mapping = EntityMapping(
                entity_id=entity_id,
                target_system=target_system,
                target_entity_type=target_entity_type,
                created_at=projected_at,
            )
            self.session.add(mapping)
        # a fresh payload always starts a new delivery cycle
        mapping.target_data = target_data
        mapping.sync_status = SyncStatus.PENDING
        mapping.last_projected_at = projected_at
        mapping.delivery_error = None
        mapping.updated_at = projected_at
        self.session.flush()
        return mapping

    def get(self, mapping_id: UUID) -> EntityMapping | None:
        return self.session.get(EntityMapping, mapping_id)

    def list_for_entity(self, entity_id: UUID) -> list[EntityMapping]:
        columns = entity_mapping_table.c
        stmt = (
            select(EntityMapping)
            .where(columns.entity_id == entity_id)
            .order_by(columns.target_system, columns.target_entity_type)
        )
        return list(self.session.execute(stmt).scalars().all())

    def _fetch(
        self,
        entity_id: UUID,
        target_system: str,
        target_entity_type: str,
        *,
        refresh: bool,
    ) -> EntityMapping | None:
        columns = entity_mapping_table.c
        stmt = (
            select(EntityMapping)
            .where(columns.entity_id == entity_id)
            .where(columns.target_system == target_system)
            .where(columns.target_entity_type == target_entity_type)
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemySyncLogRepository(_SessionRepository):
    table = sync_log_table
    groupable = frozenset(
        {"operation", "source_system", "target_system", "direction", "status"}
    )

    def add(self, entry: SyncLogEntry) -> None:
        self.session.add(entry)

    def recent_for_entity(self, entity_id: UUID, *, limit: int) -> Sequence[SyncLogEntry]:
        columns = sync_log_table.c
        stmt = (
            select(SyncLogEntry)
            .where(columns.entity_id == entity_id)
            .order_by(columns.started_at.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())
