"""Translate a validated registry document into a :class:`SchemaRegistry`."""

from __future__ import annotations

from typing import TYPE_CHECKING

from unisync.domain.errors import ConfigurationError
from unisync.domain.model import FieldKind
from unisync.domain.schema import (
    CanonicalType,
    EntityDescriptor,
    FieldRule,
    SchemaRegistry,
    SystemDescriptor,
)

if TYPE_CHECKING:
    from .schema import CanonicalTypeDocument, EntityDocument, RegistryDocument, SystemDocument


def _parse_kind(where: str, value: str) -> FieldKind:
    try:
        return FieldKind.parse(value)
    except ValueError as exc:
        raise ConfigurationError(f"{where}: unknown field type {value!r}") from exc


def translate_canonical_type(name: str, document: CanonicalTypeDocument) -> CanonicalType:
    return CanonicalType(
        name=name,
        core_fields=tuple(document.core_fields),
        extended_fields=frozenset(document.extended_fields),
        description=document.description,
    )


def translate_entity(system: str, name: str, document: EntityDocument) -> EntityDescriptor:
    return EntityDescriptor(
        system=system,
        name=name,
        canonical_type=document.canonical_type,
        primary_key=document.primary_key,
        fields=tuple(
            FieldRule(
                path=path,
                canonical_field=rule.canonical,
                kind=_parse_kind(f"{system}.{name}.{path}", rule.type),
                remap=rule.remap,
            )
            for path, rule in document.fields.items()
        ),
    )


def translate_system(name: str, document: SystemDocument) -> SystemDescriptor:
    return SystemDescriptor(
        name=name,
        display_name=document.display_name,
        system_type=document.type,
        enabled=document.enabled,
        entities={
            entity_name: translate_entity(name, entity_name, entity)
            for entity_name, entity in document.entities.items()
        },
    )


def translate_registry(document: RegistryDocument, *, validate: bool = True) -> SchemaRegistry:
    """Build (and by default validate) the registry described by ``document``."""

    return SchemaRegistry.build(
        systems=[translate_system(name, system) for name, system in document.systems.items()],
        canonical_types=[
            translate_canonical_type(name, ctype)
            for name, ctype in document.canonical_types.items()
        ],
        validate=validate,
    )
