"""Project a canonical entity into a target system's native field shape."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

from unisync.domain import paths
from unisync.domain.errors import DanglingFieldReferenceError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from unisync.domain.schema import SchemaRegistry

log = getLogger(__name__)


class ProjectableEntity(Protocol):
    @property
    def canonical_type(self) -> str: ...

    @property
    def core_data(self) -> Mapping[str, Any]: ...

    @property
    def extended_data(self) -> Mapping[str, Any] | None: ...


@dataclass(frozen=True, slots=True)
class Projector:
    """Inverse of normalization: positional re-placement, no type coercion.

    A canonical field without a value leaves the target field out entirely;
    this layer never substitutes defaults or writes ``None``.
    """

    registry: SchemaRegistry

    def project(
        self,
        entity: ProjectableEntity,
        target_system: str,
        target_entity_type: str,
    ) -> dict[str, Any]:
        descriptor = self.registry.resolve_entity(target_system, target_entity_type)
        canonical = self.registry.resolve_canonical_type(descriptor.canonical_type)
        where = f"{target_system}.{target_entity_type}"
        if descriptor.canonical_type != entity.canonical_type:
            raise DanglingFieldReferenceError(
                f"{where} maps {descriptor.canonical_type}, entity is {entity.canonical_type}"
            )

        values: dict[str, Any] = {**(entity.extended_data or {}), **entity.core_data}
        target: dict[str, Any] = {}
        for rule in descriptor.fields:
            if not canonical.declares(rule.canonical_field):
                raise DanglingFieldReferenceError(
                    f"{where}.{rule.path}: canonical field {rule.canonical_field!r} "
                    f"is not declared by {canonical.name}"
                )
            value = values.get(rule.canonical_field)
            if value is None:
                continue
            paths.set(target, rule.path, copy.deepcopy(value))

        log.debug("Projected %s entity into %s: %s", entity.canonical_type, where, target)
        return target
