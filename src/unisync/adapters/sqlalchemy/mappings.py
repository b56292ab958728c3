"""SQLAlchemy mapping metadata for canonical entities, mapping records and audit entries."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from unisync.domain.model import (
    CanonicalEntity,
    EntityMapping,
    SyncDirection,
    SyncLogEntry,
    SyncOperation,
    SyncStatus,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

canonical_entity_table = Table(
    "canonical_entity",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_system", String, nullable=False),
    Column("source_entity_type", String, nullable=False),
    Column("source_entity_id", String, nullable=False),
    Column("canonical_type", String, nullable=False),
    Column("core_data", JSON, nullable=False),
    Column("extended_data", JSON(none_as_null=True), nullable=True),
    Column("raw_data", JSON, nullable=True),
    Column("cleared_fields", JSON, nullable=False),
    Column("sync_status", Enum(SyncStatus, native_enum=False), nullable=False),
    Column("last_synced_at", UTCDateTime(), nullable=True),
    Column("sync_error", Text, nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    UniqueConstraint("source_system", "source_entity_type", "source_entity_id"),
    Index("ix_canonical_entity_canonical_type", "canonical_type"),
)

entity_mapping_table = Table(
    "entity_mapping",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_id", UUIDColumnType, ForeignKey("canonical_entity.id"), nullable=False),
    Column("target_system", String, nullable=False),
    Column("target_entity_type", String, nullable=False),
    Column("target_data", JSON, nullable=False),
    Column("sync_status", Enum(SyncStatus, native_enum=False), nullable=False),
    Column("last_projected_at", UTCDateTime(), nullable=True),
    Column("last_delivered_at", UTCDateTime(), nullable=True),
    Column("delivery_error", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    UniqueConstraint("entity_id", "target_system", "target_entity_type"),
)

# entity_id carries no foreign key: failed operations are audited for ids that never existed
sync_log_table = Table(
    "sync_log",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_id", UUIDColumnType, nullable=True),
    Column("operation", Enum(SyncOperation, native_enum=False), nullable=False),
    Column("source_system", String, nullable=False),
    Column("target_system", String, nullable=False),
    Column("direction", Enum(SyncDirection, native_enum=False), nullable=False),
    Column("status", Enum(SyncStatus, native_enum=False), nullable=False),
    Column("error_message", Text, nullable=True),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("metadata", JSON, key="details", nullable=False),
    Index("ix_sync_log_entity_id", "entity_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(CanonicalEntity, canonical_entity_table)
    mapper_registry.map_imperatively(EntityMapping, entity_mapping_table)
    mapper_registry.map_imperatively(SyncLogEntry, sync_log_table)

    configure_mappers()
    return mapper_registry
