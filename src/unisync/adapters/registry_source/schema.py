"""Pydantic models describing the schema registry document."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class RegistryBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FieldRuleDocument(RegistryBaseModel):
    canonical: str = Field(alias="universal", min_length=1)
    type: str = "string"
    remap: dict[str, Any] | None = None


class EntityDocument(RegistryBaseModel):
    canonical_type: str = Field(alias="universalType", min_length=1)
    primary_key: str | None = Field(default=None, alias="primaryKey")
    # keyed by system-native dot path, in declaration order
    fields: dict[str, FieldRuleDocument] = Field(default_factory=dict)

    _normalize_primary_key = field_validator("primary_key", mode="before")(_blank_to_none)


class SystemDocument(RegistryBaseModel):
    display_name: str | None = Field(default=None, alias="displayName")
    type: str | None = None
    enabled: bool = True
    entities: dict[str, EntityDocument] = Field(default_factory=dict)


class CanonicalTypeDocument(RegistryBaseModel):
    description: str | None = None
    core_fields: list[str] = Field(default_factory=list, alias="coreFields")
    extended_fields: list[str] = Field(default_factory=list, alias="extendedFields")


class RegistryDocument(RegistryBaseModel):
    canonical_types: dict[str, CanonicalTypeDocument] = Field(alias="universalTypes")
    systems: dict[str, SystemDocument] = Field(default_factory=dict)
