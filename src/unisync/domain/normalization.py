"""Turn a raw source record into a canonical record."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from unisync.domain import paths
from unisync.domain.errors import MissingSourceIdError
from unisync.domain.model import Degradation, EntityIdentity, NormalizedRecord
from unisync.domain.paths import MISSING
from unisync.domain.transform import INVALID, transform_with_report

if TYPE_CHECKING:
    from unisync.domain.schema import SchemaRegistry

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Normalizer:
    """Applies an entity descriptor's field rules to a raw record.

    Source values are read per rule, coerced to the rule's kind, and sorted into
    the core or extended map of the descriptor's canonical type. Three cases are
    kept apart:

    - the path is absent: the field is omitted;
    - the path holds an explicit ``None``: the field is omitted and listed in
      ``cleared_fields``;
    - the value fails strict parsing: it is degraded (numeric zero) or dropped
      (invalid timestamp) and reported in ``degradations``.
    """

    registry: SchemaRegistry

    def normalize(
        self,
        source_system: str,
        source_entity_type: str,
        raw: Any,
        *,
        source_id: str | int | None = None,
    ) -> NormalizedRecord:
        descriptor = self.registry.resolve_entity(source_system, source_entity_type)
        canonical = self.registry.resolve_canonical_type(descriptor.canonical_type)

        core: dict[str, Any] = {}
        extended: dict[str, Any] = {}
        cleared: list[str] = []
        degradations: list[Degradation] = []

        for rule in descriptor.fields:
            value = paths.get(raw, rule.path, MISSING)
            if value is MISSING:
                continue
            if value is None:
                cleared.append(rule.canonical_field)
                continue

            result = transform_with_report(value, rule.kind, rule.remap)
            if result.degraded:
                degradations.append(
                    Degradation(
                        source_path=rule.path,
                        canonical_field=rule.canonical_field,
                        kind=str(rule.kind),
                        raw_value=repr(value),
                        reason=result.degradation or "",
                    )
                )
                log.warning(
                    "Degraded %s.%s field %s (%s): %r",
                    source_system,
                    source_entity_type,
                    rule.path,
                    result.degradation,
                    value,
                )
            if result.value is INVALID:
                continue

            target = core if canonical.is_core(rule.canonical_field) else extended
            target[rule.canonical_field] = result.value

        identity = EntityIdentity(
            source_system=source_system,
            source_entity_type=source_entity_type,
            source_entity_id=self._source_id(raw, descriptor.primary_key, source_id, source_system),
        )
        log.debug(
            "Normalized %s into %s: core=%s extended=%s", identity, canonical.name, core, extended
        )
        return NormalizedRecord(
            identity=identity,
            canonical_type=canonical.name,
            core_data=core,
            extended_data=extended,
            raw_data=copy.deepcopy(raw),
            cleared_fields=tuple(cleared),
            degradations=tuple(degradations),
        )

    @staticmethod
    def _source_id(
        raw: Any,
        primary_key: str | None,
        source_id: str | int | None,
        source_system: str,
    ) -> str:
        if source_id is not None and str(source_id).strip():
            return str(source_id)
        if primary_key is not None:
            value = paths.get(raw, primary_key)
            if value is not None and str(value).strip():
                return str(value)
        raise MissingSourceIdError(
            f"No source id given and none found for {source_system} record "
            f"(primary key path: {primary_key!r})"
        )
