"""Audit records for normalization, projection and delivery decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .entity import new_id, utcnow

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from .enums import SyncDirection, SyncOperation, SyncStatus


@dataclass(eq=False, kw_only=True)
class SyncLogEntry:
    """Immutable audit fact. A correction is a new entry, never an edit."""

    operation: SyncOperation
    source_system: str
    target_system: str
    direction: SyncDirection
    status: SyncStatus
    entity_id: UUID | None = None
    error_message: str | None = None
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None
    details: dict[str, Any] = field(default_factory=dict[str, Any])
    id: UUID = field(default_factory=new_id)

    def __post_init__(self) -> None:
        self.details = dict(self.details)
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any) -> None:
        # ORM bookkeeping attributes are underscore-prefixed and stay writable
        if getattr(self, "_sealed", False) and not name.startswith("_"):
            raise AttributeError(f"SyncLogEntry.{name} cannot be changed after construction")
        super().__setattr__(name, value)

    def describe(self) -> dict[str, Any]:
        """Plain representation used when the entry has to be logged out-of-band."""
        return {
            "id": str(self.id),
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "operation": str(self.operation),
            "source_system": self.source_system,
            "target_system": self.target_system,
            "direction": str(self.direction),
            "status": str(self.status),
            "error_message": self.error_message,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "details": self.details,
        }
