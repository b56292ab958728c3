"""Sync orchestrator: identity, idempotent upserts and fan-out to compatible targets."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING, Any

from unisync.config.sync import SyncConfig
from unisync.domain.audit import AuditLog
from unisync.domain.errors import EntityNotFoundError, MappingNotFoundError
from unisync.domain.model import (
    CANONICAL_SYSTEM,
    SyncDirection,
    SyncLogEntry,
    SyncOperation,
    SyncStatus,
    utcnow,
)
from unisync.domain.normalization import Normalizer
from unisync.domain.ports import EntityQuery
from unisync.domain.projection import Projector
from unisync.domain.schema import RegistryProvider

from .locks import KeyedLocks
from .results import (
    BatchItemError,
    BatchSyncResult,
    IntegrationStatistics,
    OutcomeStatus,
    ProjectionResult,
    TargetOutcome,
)

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable, Iterable
    from datetime import datetime
    from uuid import UUID

    from unisync.domain.model import CanonicalEntity, EntityMapping
    from unisync.domain.ports import SyncUnitOfWork
    from unisync.domain.schema import (
        CanonicalType,
        CompatibleTarget,
        SchemaRegistry,
        SystemSummary,
    )

    from .results import SyncItem

    UnitOfWorkFactory = Callable[[], SyncUnitOfWork]

log = getLogger(__name__)


class SyncOrchestrator:
    """Drives normalization, storage and projection for canonical entities.

    The registry is read once per operation; a fan-out uses that one snapshot
    for every target, so a registry swap only affects operations started
    afterwards. Writes for one source identity are serialized in-process and
    the store's upsert is atomic per natural key.
    """

    def __init__(
        self,
        registry: RegistryProvider | SchemaRegistry,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        audit_log: AuditLog | None = None,
        config: SyncConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not isinstance(registry, RegistryProvider):
            registry = RegistryProvider(registry)
        self._provider = registry
        self._unit_of_work_factory = unit_of_work_factory
        self._audit = audit_log or AuditLog(unit_of_work_factory)
        self._config = config or SyncConfig()
        self._clock = clock
        self._locks = KeyedLocks()

    @property
    def registry_provider(self) -> RegistryProvider:
        return self._provider

    # Source -> canonical -----------------------------------------------------------

    def sync_to_canonical(
        self,
        source_system: str,
        entity_type: str,
        source_id: str | int | None,
        raw: Any,
    ) -> CanonicalEntity:
        """Normalize ``raw`` and replace the stored entity for its source identity.

        On failure the previously stored entity is left untouched, a failed audit
        entry is appended and the error propagates.
        """

        registry = self._provider.current()
        started_at = self._clock()
        try:
            record = Normalizer(registry).normalize(
                source_system, entity_type, raw, source_id=source_id
            )
            with self._locks.hold(record.identity), self._unit_of_work_factory() as uow:
                entity = uow.repositories.entities.upsert(record, synced_at=self._clock())
                uow.commit()
        except Exception as exc:
            log.error("Failed to sync %s %s %s: %s", source_system, entity_type, source_id, exc)
            self._audit.append(
                SyncLogEntry(
                    operation=SyncOperation.SYNC,
                    source_system=source_system,
                    target_system=CANONICAL_SYSTEM,
                    direction=SyncDirection.SOURCE_TO_CANONICAL,
                    status=SyncStatus.FAILED,
                    error_message=str(exc),
                    started_at=started_at,
                    completed_at=self._clock(),
                    details={
                        "entity_type": entity_type,
                        "source_entity_id": None if source_id is None else str(source_id),
                        "error_type": type(exc).__name__,
                    },
                )
            )
            raise

        self._audit.append(
            SyncLogEntry(
                operation=SyncOperation.SYNC,
                source_system=source_system,
                target_system=CANONICAL_SYSTEM,
                direction=SyncDirection.SOURCE_TO_CANONICAL,
                status=SyncStatus.SYNCED,
                entity_id=entity.id,
                started_at=started_at,
                completed_at=self._clock(),
                details={
                    "entity_type": entity_type,
                    "source_entity_id": record.identity.source_entity_id,
                    "canonical_type": record.canonical_type,
                    "cleared_fields": list(record.cleared_fields),
                    "degradations": [item.as_metadata() for item in record.degradations],
                },
            )
        )
        log.info("Synced %s to canonical entity %s", record.identity, entity.id)
        return entity

    def sync_batch(self, items: Iterable[SyncItem]) -> BatchSyncResult:
        """Sync every item independently and count successes and failures."""

        result = BatchSyncResult()
        for index, item in enumerate(items):
            result.total += 1
            try:
                entity = self.sync_to_canonical(
                    item.source_system, item.entity_type, item.source_id, item.raw
                )
            except Exception as exc:  # noqa: BLE001
                result.failed += 1
                result.errors.append(
                    BatchItemError(
                        index=index,
                        source_system=item.source_system,
                        entity_type=item.entity_type,
                        source_id=None if item.source_id is None else str(item.source_id),
                        error=str(exc),
                    )
                )
                continue
            result.successful += 1
            result.entity_ids.append(entity.id)

        log.info(
            "Batch sync completed: %s successful, %s failed", result.successful, result.failed
        )
        return result

    # Canonical -> target ----------------------------------------------------------

    def project_to_target(
        self,
        entity_id: UUID,
        target_system: str,
        target_entity_type: str,
    ) -> ProjectionResult:
        """Project the entity into one target and store the payload as a pending mapping."""

        return self._project(self._provider.current(), entity_id, target_system, target_entity_type)

    def sync_to_all_compatible_targets(
        self,
        entity_id: UUID,
        *,
        cancel_event: threading.Event | None = None,
    ) -> list[TargetOutcome]:
        """Project the entity into every enabled target that maps its canonical type.

        Targets are isolated from each other: a failing target is reported in its
        outcome and never aborts the rest. Outcomes follow registry declaration
        order regardless of completion order. Targets not yet started when
        ``cancel_event`` is set are reported as cancelled; finished ones stay.
        """

        registry = self._provider.current()
        with self._unit_of_work_factory() as uow:
            entity = self._require_active(uow, entity_id)
            canonical_type = entity.canonical_type

        targets = registry.compatible_targets(canonical_type)
        log.info(
            "Fanning out entity %s (%s) to %s compatible target(s)",
            entity_id,
            canonical_type,
            len(targets),
        )

        workers = min(self._config.fanout_workers, len(targets))
        if workers <= 1:
            outcomes = [
                self._project_outcome(registry, entity_id, target, cancel_event)
                for target in targets
            ]
        else:
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="unisync-fanout"
            ) as executor:
                futures = [
                    executor.submit(
                        self._project_outcome, registry, entity_id, target, cancel_event
                    )
                    for target in targets
                ]
                outcomes = [future.result() for future in futures]

        counts = {status: 0 for status in OutcomeStatus}
        for outcome in outcomes:
            counts[outcome.status] += 1
        log.info(
            "Fan-out of entity %s finished: %s succeeded, %s failed, %s cancelled",
            entity_id,
            counts[OutcomeStatus.SUCCEEDED],
            counts[OutcomeStatus.FAILED],
            counts[OutcomeStatus.CANCELLED],
        )
        return outcomes

    def _project_outcome(
        self,
        registry: SchemaRegistry,
        entity_id: UUID,
        target: CompatibleTarget,
        cancel_event: threading.Event | None,
    ) -> TargetOutcome:
        if cancel_event is not None and cancel_event.is_set():
            return TargetOutcome(
                system=target.system,
                entity_type=target.entity_type,
                status=OutcomeStatus.CANCELLED,
                error="Fan-out cancelled before this target started",
            )
        try:
            result = self._project(registry, entity_id, target.system, target.entity_type)
        except Exception as exc:  # noqa: BLE001
            return TargetOutcome(
                system=target.system,
                entity_type=target.entity_type,
                status=OutcomeStatus.FAILED,
                error=str(exc),
            )
        return TargetOutcome(
            system=target.system,
            entity_type=target.entity_type,
            status=OutcomeStatus.SUCCEEDED,
            result=result,
        )

    def _project(
        self,
        registry: SchemaRegistry,
        entity_id: UUID,
        target_system: str,
        target_entity_type: str,
    ) -> ProjectionResult:
        started_at = self._clock()
        try:
            with self._unit_of_work_factory() as uow:
                entity = self._require_active(uow, entity_id)
                target_data = Projector(registry).project(entity, target_system, target_entity_type)
                mapping = uow.repositories.mappings.upsert(
                    entity_id=entity.id,
                    target_system=target_system,
                    target_entity_type=target_entity_type,
                    target_data=target_data,
                    projected_at=self._clock(),
                )
                uow.commit()
        except Exception as exc:
            log.error(
                "Failed to map entity %s to %s %s: %s",
                entity_id,
                target_system,
                target_entity_type,
                exc,
            )
            self._audit.append(
                self._projection_entry(
                    entity_id, target_system, target_entity_type, started_at, error=exc
                )
            )
            raise

        self._audit.append(
            self._projection_entry(entity_id, target_system, target_entity_type, started_at)
        )
        log.info("Mapped entity %s to %s %s", entity_id, target_system, target_entity_type)
        return ProjectionResult(mapping=mapping, target_data=target_data)

    def _projection_entry(
        self,
        entity_id: UUID,
        target_system: str,
        target_entity_type: str,
        started_at: datetime,
        *,
        error: Exception | None = None,
    ) -> SyncLogEntry:
        details: dict[str, Any] = {"target_entity_type": target_entity_type}
        if error is not None:
            details["error_type"] = type(error).__name__
        return SyncLogEntry(
            operation=SyncOperation.PROJECT,
            source_system=CANONICAL_SYSTEM,
            target_system=target_system,
            direction=SyncDirection.CANONICAL_TO_TARGET,
            status=SyncStatus.FAILED if error is not None else SyncStatus.SYNCED,
            entity_id=entity_id,
            error_message=None if error is None else str(error),
            started_at=started_at,
            completed_at=self._clock(),
            details=details,
        )

    # Delivery bookkeeping -----------------------------------------------------------

    def start_delivery(self, mapping_id: UUID) -> EntityMapping:
        """Mark a projected payload as being delivered by a collaborator."""

        with self._unit_of_work_factory() as uow:
            mapping = self._require_mapping(uow, mapping_id)
            mapping.start_delivery(at=self._clock())
            uow.commit()
        return mapping

    def finish_delivery(self, mapping_id: UUID, *, error: str | None = None) -> EntityMapping:
        """Record the delivery outcome reported by a collaborator."""

        started_at = self._clock()
        with self._unit_of_work_factory() as uow:
            mapping = self._require_mapping(uow, mapping_id)
            mapping.finish_delivery(at=self._clock(), error=error)
            uow.commit()

        self._audit.append(
            SyncLogEntry(
                operation=SyncOperation.DELIVER,
                source_system=CANONICAL_SYSTEM,
                target_system=mapping.target_system,
                direction=SyncDirection.CANONICAL_TO_TARGET,
                status=mapping.sync_status,
                entity_id=mapping.entity_id,
                error_message=error,
                started_at=started_at,
                completed_at=self._clock(),
                details={
                    "mapping_id": str(mapping.id),
                    "target_entity_type": mapping.target_entity_type,
                },
            )
        )
        return mapping

    # Lifecycle ----------------------------------------------------------------------

    def deactivate(self, entity_id: UUID) -> CanonicalEntity:
        return self._set_active(entity_id, active=False)

    def reactivate(self, entity_id: UUID) -> CanonicalEntity:
        return self._set_active(entity_id, active=True)

    def _set_active(self, entity_id: UUID, *, active: bool) -> CanonicalEntity:
        started_at = self._clock()
        with self._unit_of_work_factory() as uow:
            entity = uow.repositories.entities.get(entity_id)
            if entity is None:
                raise EntityNotFoundError(entity_id)
            if active:
                entity.reactivate(at=self._clock())
            else:
                entity.deactivate(at=self._clock())
            uow.commit()

        self._audit.append(
            SyncLogEntry(
                operation=SyncOperation.REACTIVATE if active else SyncOperation.DEACTIVATE,
                source_system=entity.source_system,
                target_system=CANONICAL_SYSTEM,
                direction=SyncDirection.SOURCE_TO_CANONICAL,
                status=SyncStatus.SYNCED,
                entity_id=entity.id,
                started_at=started_at,
                completed_at=self._clock(),
            )
        )
        log.info("%s entity %s", "Reactivated" if active else "Deactivated", entity_id)
        return entity

    # Queries ------------------------------------------------------------------------

    def get_entity(self, entity_id: UUID) -> CanonicalEntity:
        with self._unit_of_work_factory() as uow:
            entity = uow.repositories.entities.get(entity_id)
        if entity is None:
            raise EntityNotFoundError(entity_id)
        return entity

    def query_entities(self, query: EntityQuery | None = None) -> list[CanonicalEntity]:
        """List entities newest first, with the page size clamped to the configured maximum."""

        effective = query or EntityQuery()
        requested = effective.limit or self._config.default_query_limit
        limit = min(requested, self._config.max_query_limit)
        effective = replace(effective, limit=max(limit, 1), offset=max(effective.offset, 0))
        with self._unit_of_work_factory() as uow:
            return list(uow.repositories.entities.query(effective))

    def mappings_for(self, entity_id: UUID) -> list[EntityMapping]:
        with self._unit_of_work_factory() as uow:
            return list(uow.repositories.mappings.list_for_entity(entity_id))

    def recent_logs(self, entity_id: UUID, *, limit: int | None = None) -> list[SyncLogEntry]:
        effective_limit = limit or self._config.recent_log_limit
        with self._unit_of_work_factory() as uow:
            logs = uow.repositories.sync_logs.recent_for_entity(entity_id, limit=effective_limit)
        return list(logs)

    def statistics(self) -> IntegrationStatistics:
        registry = self._provider.current()
        with self._unit_of_work_factory() as uow:
            repos = uow.repositories
            return IntegrationStatistics(
                total_entities=repos.entities.count(),
                total_mappings=repos.mappings.count(),
                total_sync_operations=repos.sync_logs.count(),
                enabled_systems=len(registry.enabled_systems()),
                entities_by_type=tuple(
                    repos.entities.count_by("canonical_type", "source_system", "sync_status")
                ),
                mappings_by_system=tuple(repos.mappings.count_by("target_system", "sync_status")),
                sync_history=tuple(
                    repos.sync_logs.count_by("source_system", "target_system", "status")
                ),
            )

    def supported_systems(self) -> tuple[SystemSummary, ...]:
        return self._provider.current().supported_systems()

    def canonical_types(self) -> tuple[CanonicalType, ...]:
        return tuple(self._provider.current().canonical_types.values())

    # Helpers ------------------------------------------------------------------------

    @staticmethod
    def _require_active(uow: SyncUnitOfWork, entity_id: UUID) -> CanonicalEntity:
        entity = uow.repositories.entities.get(entity_id)
        if entity is None:
            raise EntityNotFoundError(entity_id)
        if not entity.is_active:
            raise EntityNotFoundError(entity_id, inactive=True)
        return entity

    @staticmethod
    def _require_mapping(uow: SyncUnitOfWork, mapping_id: UUID) -> EntityMapping:
        mapping = uow.repositories.mappings.get(mapping_id)
        if mapping is None:
            raise MappingNotFoundError(mapping_id)
        return mapping
