"""Best-effort, append-only audit trail of sync decisions."""

from __future__ import annotations

import json
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from unisync.config.logging import AUDIT_FALLBACK_LOGGER

if TYPE_CHECKING:
    from unisync.domain.model import SyncLogEntry
    from unisync.domain.ports import SyncUnitOfWork

log = getLogger(__name__)
fallback_log = getLogger(AUDIT_FALLBACK_LOGGER)

type UnitOfWorkFactory = Callable[[], SyncUnitOfWork]


class AuditLog:
    """Writes each entry in its own unit of work.

    Audit writes never fail the operation they describe: when the log store
    is unavailable the entry is emitted on the ``unisync.audit.fallback``
    logger instead, so it is still recoverable from diagnostics.
    """

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._unit_of_work_factory = unit_of_work_factory

    def append(self, entry: SyncLogEntry) -> bool:
        """Persist ``entry``; return ``False`` if it only reached the fallback logger."""

        try:
            with self._unit_of_work_factory() as uow:
                uow.repositories.sync_logs.add(entry)
                uow.commit()
        except Exception:  # noqa: BLE001
            fallback_log.exception(
                "Audit store unavailable, entry not persisted: %s",
                json.dumps(entry.describe(), default=str, sort_keys=True),
            )
            return False
        log.debug("Recorded %s %s entry %s", entry.operation, entry.status, entry.id)
        return True
