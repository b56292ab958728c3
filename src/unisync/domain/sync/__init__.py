"""Sync orchestration: source -> canonical -> target flows."""

from __future__ import annotations

from .locks import KeyedLocks
from .orchestrator import SyncOrchestrator
from .results import (
    BatchItemError,
    BatchSyncResult,
    IntegrationStatistics,
    OutcomeStatus,
    ProjectionResult,
    SyncItem,
    TargetOutcome,
)

__all__ = [
    "BatchItemError",
    "BatchSyncResult",
    "IntegrationStatistics",
    "KeyedLocks",
    "OutcomeStatus",
    "ProjectionResult",
    "SyncItem",
    "SyncOrchestrator",
    "TargetOutcome",
]
