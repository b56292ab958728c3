"""Create canonical entity, entity mapping and sync log tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 12:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_SYNC_STATUS = ("PENDING", "IN_PROGRESS", "SYNCED", "FAILED")
_SYNC_OPERATION = ("SYNC", "PROJECT", "DELIVER", "DEACTIVATE", "REACTIVATE")
_SYNC_DIRECTION = ("SOURCE_TO_CANONICAL", "CANONICAL_TO_TARGET")


def _enum(name: str, values: Sequence[str]) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=max(map(len, values)))


def upgrade() -> None:
    op.create_table(
        "canonical_entity",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_system", sa.String(), nullable=False),
        sa.Column("source_entity_type", sa.String(), nullable=False),
        sa.Column("source_entity_id", sa.String(), nullable=False),
        sa.Column("canonical_type", sa.String(), nullable=False),
        sa.Column("core_data", sa.JSON(), nullable=False),
        sa.Column("extended_data", sa.JSON(), nullable=True),
        sa.Column("raw_data", sa.JSON(), nullable=True),
        sa.Column("cleared_fields", sa.JSON(), nullable=False),
        sa.Column("sync_status", _enum("syncstatus", _SYNC_STATUS), nullable=False),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_error", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_canonical_entity"),
        sa.UniqueConstraint(
            "source_system",
            "source_entity_type",
            "source_entity_id",
            name="uq_canonical_entity_canonical_entity_source_system",
        ),
    )
    op.create_index(
        "ix_canonical_entity_canonical_type", "canonical_entity", ["canonical_type"]
    )

    op.create_table(
        "entity_mapping",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("target_system", sa.String(), nullable=False),
        sa.Column("target_entity_type", sa.String(), nullable=False),
        sa.Column("target_data", sa.JSON(), nullable=False),
        sa.Column("sync_status", _enum("syncstatus", _SYNC_STATUS), nullable=False),
        sa.Column("last_projected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivery_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_entity_mapping"),
        sa.ForeignKeyConstraint(
            ["entity_id"],
            ["canonical_entity.id"],
            name="fk_entity_mapping_entity_mapping_entity_id_canonical_entity",
        ),
        sa.UniqueConstraint(
            "entity_id",
            "target_system",
            "target_entity_type",
            name="uq_entity_mapping_entity_mapping_entity_id",
        ),
    )

    op.create_table(
        "sync_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=True),
        sa.Column("operation", _enum("syncoperation", _SYNC_OPERATION), nullable=False),
        sa.Column("source_system", sa.String(), nullable=False),
        sa.Column("target_system", sa.String(), nullable=False),
        sa.Column("direction", _enum("syncdirection", _SYNC_DIRECTION), nullable=False),
        sa.Column("status", _enum("syncstatus", _SYNC_STATUS), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_sync_log"),
    )
    op.create_index("ix_sync_log_entity_id", "sync_log", ["entity_id"])


def downgrade() -> None:
    op.drop_index("ix_sync_log_entity_id", table_name="sync_log")
    op.drop_table("sync_log")
    op.drop_table("entity_mapping")
    op.drop_index("ix_canonical_entity_canonical_type", table_name="canonical_entity")
    op.drop_table("canonical_entity")
