"""Public domain model surface."""

from __future__ import annotations

from unisync.domain.model.audit import SyncLogEntry
from unisync.domain.model.entity import (
    CanonicalEntity,
    Degradation,
    EntityIdentity,
    EntityMapping,
    NormalizedRecord,
    new_id,
    utcnow,
)
from unisync.domain.model.enums import (
    CANONICAL_SYSTEM,
    FieldKind,
    SyncDirection,
    SyncOperation,
    SyncStatus,
)
from unisync.domain.model.status import SyncTrackedMixin, can_transition, check_transition

__all__ = [  # noqa: RUF022
    # entities
    "CanonicalEntity",
    "EntityIdentity",
    "EntityMapping",
    "NormalizedRecord",
    "Degradation",
    # audit
    "SyncLogEntry",
    # status
    "SyncTrackedMixin",
    "can_transition",
    "check_transition",
    # enums
    "CANONICAL_SYSTEM",
    "FieldKind",
    "SyncDirection",
    "SyncOperation",
    "SyncStatus",
    # helpers
    "new_id",
    "utcnow",
]
