"""Canonical entities and the records derived from them."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from .enums import SyncStatus
from .status import SyncTrackedMixin

if TYPE_CHECKING:
    from collections.abc import Mapping


def new_id() -> UUID:
    return uuid4()


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class EntityIdentity:
    """Natural key of a canonical entity: where it came from, not what it is."""

    source_system: str
    source_entity_type: str
    source_entity_id: str

    def __str__(self) -> str:
        return f"{self.source_system}/{self.source_entity_type}/{self.source_entity_id}"


@dataclass(frozen=True, slots=True)
class Degradation:
    """A value that failed strict parsing and was coerced or dropped."""

    source_path: str
    canonical_field: str
    kind: str
    raw_value: str
    reason: str

    def as_metadata(self) -> dict[str, str]:
        return {
            "source_path": self.source_path,
            "canonical_field": self.canonical_field,
            "kind": self.kind,
            "raw_value": self.raw_value,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class NormalizedRecord:
    """Output of normalization before it is stored as a :class:`CanonicalEntity`."""

    identity: EntityIdentity
    canonical_type: str
    core_data: Mapping[str, Any]
    extended_data: Mapping[str, Any]
    raw_data: Any
    cleared_fields: tuple[str, ...] = ()
    degradations: tuple[Degradation, ...] = ()

    @property
    def canonical_data(self) -> dict[str, Any]:
        return {**self.extended_data, **self.core_data}


@dataclass(eq=False, kw_only=True)
class CanonicalEntity:
    """The normalized, system-agnostic representation of one source record.

    Every sync of the same identity replaces ``core_data``, ``extended_data``,
    ``raw_data`` and ``cleared_fields`` wholesale (last write wins). The entity is
    never deleted; ``is_active`` is flipped explicitly.
    """

    source_system: str
    source_entity_type: str
    source_entity_id: str
    canonical_type: str
    core_data: dict[str, Any] = field(default_factory=dict[str, Any])
    extended_data: dict[str, Any] | None = None
    raw_data: Any = None
    cleared_fields: list[str] = field(default_factory=list[str])
    sync_status: SyncStatus = SyncStatus.PENDING
    last_synced_at: datetime | None = None
    sync_error: str | None = None
    is_active: bool = True
    id: UUID = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: NormalizedRecord, *, synced_at: datetime) -> CanonicalEntity:
        entity = cls(
            source_system=record.identity.source_system,
            source_entity_type=record.identity.source_entity_type,
            source_entity_id=record.identity.source_entity_id,
            canonical_type=record.canonical_type,
        )
        entity.replace_with(record, synced_at=synced_at)
        return entity

    @property
    def identity(self) -> EntityIdentity:
        return EntityIdentity(self.source_system, self.source_entity_type, self.source_entity_id)

    @property
    def canonical_data(self) -> dict[str, Any]:
        """Union of extended and core values; core wins on a (misconfigured) collision."""
        return {**(self.extended_data or {}), **self.core_data}

    def replace_with(self, record: NormalizedRecord, *, synced_at: datetime) -> None:
        """Full replace from a fresh normalization; never merges with previous content."""
        if record.identity != self.identity:
            raise ValueError(f"Record {record.identity} does not belong to entity {self.identity}")
        self.canonical_type = record.canonical_type
        self.core_data = copy.deepcopy(dict(record.core_data))
        self.extended_data = copy.deepcopy(dict(record.extended_data)) or None
        self.raw_data = copy.deepcopy(record.raw_data)
        self.cleared_fields = list(record.cleared_fields)
        self.sync_status = SyncStatus.SYNCED
        self.last_synced_at = synced_at
        self.sync_error = None
        self.updated_at = synced_at

    def deactivate(self, *, at: datetime) -> None:
        self.is_active = False
        self.updated_at = at

    def reactivate(self, *, at: datetime) -> None:
        self.is_active = True
        self.updated_at = at


@dataclass(eq=False, kw_only=True)
class EntityMapping(SyncTrackedMixin):
    """Last projection of one canonical entity into one target (system, entity type)."""

    entity_id: UUID
    target_system: str
    target_entity_type: str
    target_data: dict[str, Any] = field(default_factory=dict[str, Any])
    last_projected_at: datetime | None = None
    last_delivered_at: datetime | None = None
    delivery_error: str | None = None
    id: UUID = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def start_delivery(self, *, at: datetime) -> None:
        self.transition_to(SyncStatus.IN_PROGRESS)
        self.updated_at = at

    def finish_delivery(self, *, at: datetime, error: str | None = None) -> None:
        if error is None:
            self.transition_to(SyncStatus.SYNCED)
            self.last_delivered_at = at
        else:
            self.transition_to(SyncStatus.FAILED)
        self.delivery_error = error
        self.updated_at = at
