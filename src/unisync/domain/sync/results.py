"""Result types returned by the sync orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uuid import UUID

    from unisync.domain.model import EntityMapping
    from unisync.domain.ports import GroupCount


@dataclass(frozen=True, slots=True)
class ProjectionResult:
    """Target-native payload plus the mapping record that now holds it."""

    mapping: EntityMapping
    target_data: dict[str, Any]

    @property
    def mapping_id(self) -> UUID:
        return self.mapping.id


class OutcomeStatus(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class TargetOutcome:
    """Result of projecting one entity into one compatible target during a fan-out."""

    system: str
    entity_type: str
    status: OutcomeStatus
    error: str | None = None
    result: ProjectionResult | None = None

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


@dataclass(frozen=True, slots=True)
class SyncItem:
    """One record of a batch sync request."""

    source_system: str
    entity_type: str
    source_id: str | int | None
    raw: Any


@dataclass(frozen=True, slots=True)
class BatchItemError:
    index: int
    source_system: str
    entity_type: str
    source_id: str | None
    error: str


@dataclass(slots=True)
class BatchSyncResult:
    """Aggregate counts of a batch sync; failures do not stop the batch."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    errors: list[BatchItemError] = field(default_factory=list[BatchItemError])
    entity_ids: list[UUID] = field(default_factory=list["UUID"])


@dataclass(frozen=True, slots=True)
class IntegrationStatistics:
    total_entities: int
    total_mappings: int
    total_sync_operations: int
    enabled_systems: int
    entities_by_type: tuple[GroupCount, ...]
    mappings_by_system: tuple[GroupCount, ...]
    sync_history: tuple[GroupCount, ...]
