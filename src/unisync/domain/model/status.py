"""Sync status state machine shared by canonical entities and mapping records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from unisync.domain.errors import InvalidTransitionError

from .enums import SyncStatus

ALLOWED_TRANSITIONS: Final[dict[SyncStatus, frozenset[SyncStatus]]] = {
    SyncStatus.PENDING: frozenset({SyncStatus.IN_PROGRESS}),
    SyncStatus.IN_PROGRESS: frozenset({SyncStatus.SYNCED, SyncStatus.FAILED}),
    SyncStatus.FAILED: frozenset({SyncStatus.IN_PROGRESS}),
    SyncStatus.SYNCED: frozenset({SyncStatus.IN_PROGRESS}),
}


def can_transition(current: SyncStatus, new: SyncStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def check_transition(current: SyncStatus, new: SyncStatus) -> None:
    if not can_transition(current, new):
        raise InvalidTransitionError(f"Cannot move sync status from {current} to {new}")


@dataclass(eq=False, kw_only=True)
class SyncTrackedMixin:
    """Capability: carries a sync status guarded by the transition table."""

    sync_status: SyncStatus = SyncStatus.PENDING

    def transition_to(self, status: SyncStatus) -> None:
        check_transition(self.sync_status, status)
        self.sync_status = status
