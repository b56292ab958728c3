"""Schema registry: per-system entity descriptors and canonical types.

The registry is plain immutable data plus lookups. It is built once (usually
from a registry document, see :mod:`unisync.adapters.registry_source`), validated
eagerly, and then shared read-only across concurrent operations.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from unisync.domain import paths
from unisync.domain.errors import (
    ConfigurationError,
    PathConflictError,
    RegistryValidationError,
    UnknownCanonicalTypeError,
    UnknownMappingError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from unisync.domain.model import FieldKind


def _freeze[K, V](mapping: Mapping[K, V] | None) -> Mapping[K, V]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True, slots=True)
class CanonicalType:
    """Named canonical schema. Core and extended field names never overlap."""

    name: str
    core_fields: tuple[str, ...]
    extended_fields: frozenset[str] = frozenset()
    description: str | None = None

    def __post_init__(self) -> None:
        overlap = set(self.core_fields) & self.extended_fields
        if overlap:
            names = ", ".join(sorted(overlap))
            raise ConfigurationError(
                f"Canonical type {self.name}: fields declared both core and extended: {names}"
            )
        if len(set(self.core_fields)) != len(self.core_fields):
            raise ConfigurationError(f"Canonical type {self.name}: duplicate core field names")

    def is_core(self, field_name: str) -> bool:
        return field_name in self.core_fields

    def declares(self, field_name: str) -> bool:
        return field_name in self.core_fields or field_name in self.extended_fields


@dataclass(frozen=True, slots=True)
class FieldRule:
    """Maps one system-native path onto one canonical field."""

    path: str
    canonical_field: str
    kind: FieldKind
    remap: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.remap is not None:
            object.__setattr__(self, "remap", _freeze(self.remap))


@dataclass(frozen=True, slots=True)
class EntityDescriptor:
    """How one entity type of one system maps onto a canonical type."""

    system: str
    name: str
    canonical_type: str
    fields: tuple[FieldRule, ...]
    primary_key: str | None = None

    def field_for(self, canonical_field: str) -> FieldRule | None:
        for rule in self.fields:
            if rule.canonical_field == canonical_field:
                return rule
        return None


@dataclass(frozen=True, slots=True)
class SystemDescriptor:
    """One external system and the entity types it exposes (in declaration order)."""

    name: str
    entities: Mapping[str, EntityDescriptor]
    display_name: str | None = None
    system_type: str | None = None
    enabled: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "entities", _freeze(self.entities))


@dataclass(frozen=True, slots=True)
class CompatibleTarget:
    system: str
    entity_type: str


@dataclass(frozen=True, slots=True)
class SystemSummary:
    name: str
    display_name: str | None
    system_type: str | None
    enabled: bool
    entities: tuple[str, ...]


@dataclass(frozen=True)
class SchemaRegistry:
    """Lookup table keyed by (system, entity type) and by canonical type name.

    Iteration order follows declaration order: systems first, then the entity
    types inside each system. Fan-out discovery uses exactly this order.
    """

    systems: Mapping[str, SystemDescriptor]
    canonical_types: Mapping[str, CanonicalType]
    validate: bool = field(default=True, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "systems", _freeze(self.systems))
        object.__setattr__(self, "canonical_types", _freeze(self.canonical_types))
        if self.validate:
            problems = list(self.problems())
            if problems:
                raise RegistryValidationError(problems)

    @classmethod
    def build(
        cls,
        systems: Iterable[SystemDescriptor],
        canonical_types: Iterable[CanonicalType],
        *,
        validate: bool = True,
    ) -> SchemaRegistry:
        return cls(
            systems={system.name: system for system in systems},
            canonical_types={ctype.name: ctype for ctype in canonical_types},
            validate=validate,
        )

    # Lookups ---------------------------------------------------------------------

    def resolve_entity(self, system: str, entity_type: str) -> EntityDescriptor:
        descriptor = self.systems.get(system)
        if descriptor is None or entity_type not in descriptor.entities:
            raise UnknownMappingError(system, entity_type)
        return descriptor.entities[entity_type]

    def resolve_canonical_type(self, name: str) -> CanonicalType:
        canonical = self.canonical_types.get(name)
        if canonical is None:
            raise UnknownCanonicalTypeError(name)
        return canonical

    def canonical_type_for(self, system: str, entity_type: str) -> str:
        return self.resolve_entity(system, entity_type).canonical_type

    def is_system_supported(self, system: str) -> bool:
        return system in self.systems

    def compatible_targets(self, canonical_type: str) -> tuple[CompatibleTarget, ...]:
        """Every (enabled system, entity type) that maps onto ``canonical_type``."""

        return tuple(
            CompatibleTarget(system=system.name, entity_type=entity.name)
            for system in self.systems.values()
            if system.enabled
            for entity in system.entities.values()
            if entity.canonical_type == canonical_type
        )

    def supported_systems(self) -> tuple[SystemSummary, ...]:
        return tuple(
            SystemSummary(
                name=system.name,
                display_name=system.display_name,
                system_type=system.system_type,
                enabled=system.enabled,
                entities=tuple(system.entities),
            )
            for system in self.systems.values()
        )

    def enabled_systems(self) -> tuple[str, ...]:
        return tuple(name for name, system in self.systems.items() if system.enabled)

    # Validation ------------------------------------------------------------------

    def problems(self) -> Iterator[str]:
        """Yield a description of every configuration problem in the registry."""

        for name, canonical in self.canonical_types.items():
            if name != canonical.name:
                yield f"Canonical type registered as {name!r} is named {canonical.name!r}"
        for system_name, system in self.systems.items():
            if system_name != system.name:
                yield f"System registered as {system_name!r} is named {system.name!r}"
            for entity_name, entity in system.entities.items():
                if entity_name != entity.name or entity.system != system.name:
                    yield (
                        f"Entity registered as {system_name}.{entity_name} "
                        f"declares {entity.system}.{entity.name}"
                    )
                yield from _entity_problems(entity, self.canonical_types.get(entity.canonical_type))


def _entity_problems(entity: EntityDescriptor, canonical: CanonicalType | None) -> Iterator[str]:
    where = f"{entity.system}.{entity.name}"
    if canonical is None:
        yield f"{where}: unknown canonical type {entity.canonical_type!r}"
    if entity.primary_key is not None:
        try:
            paths.split_path(entity.primary_key)
        except PathConflictError as exc:
            yield f"{where}: primary key: {exc}"

    valid_paths: list[str] = []
    for rule in entity.fields:
        try:
            paths.split_path(rule.path)
        except PathConflictError as exc:
            yield f"{where}: {exc}"
            continue
        valid_paths.append(rule.path)
        if canonical is not None and not canonical.declares(rule.canonical_field):
            yield (
                f"{where}.{rule.path}: canonical field {rule.canonical_field!r} "
                f"is not declared by {canonical.name}"
            )

    seen: set[str] = set()
    for path in valid_paths:
        if path in seen:
            yield f"{where}: path {path!r} declared more than once"
        seen.add(path)
