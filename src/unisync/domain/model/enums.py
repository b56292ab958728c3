"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum

CANONICAL_SYSTEM = "Canonical"


class SyncStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SYNCED = "synced"
    FAILED = "failed"


class SyncOperation(StrEnum):
    SYNC = "sync"
    PROJECT = "project"
    DELIVER = "deliver"
    DEACTIVATE = "deactivate"
    REACTIVATE = "reactivate"


class SyncDirection(StrEnum):
    SOURCE_TO_CANONICAL = "source_to_canonical"
    CANONICAL_TO_TARGET = "canonical_to_target"


class FieldKind(StrEnum):
    """Scalar kind a source field is coerced into on the way in."""

    STRING = "string"
    BOOLEAN = "boolean"
    DECIMAL = "decimal"
    INTEGER = "integer"
    TIMESTAMP = "timestamp"
    STRUCTURED = "structured"
    ENUMERATED = "enumerated"

    @classmethod
    def parse(cls, value: str) -> FieldKind:
        """Accept the canonical names plus the legacy aliases used in older documents."""

        normalized = value.strip().lower()
        alias = _FIELD_KIND_ALIASES.get(normalized)
        if alias is not None:
            return alias
        return cls(normalized)


_FIELD_KIND_ALIASES: dict[str, FieldKind] = {
    "date": FieldKind.TIMESTAMP,
    "datetime": FieldKind.TIMESTAMP,
    "address": FieldKind.STRUCTURED,
    "enum": FieldKind.ENUMERATED,
    "float": FieldKind.DECIMAL,
    "int": FieldKind.INTEGER,
    "bool": FieldKind.BOOLEAN,
}
