"""Schema registry types and the process-wide registry holder."""

from __future__ import annotations

from .provider import RegistryProvider
from .registry import (
    CanonicalType,
    CompatibleTarget,
    EntityDescriptor,
    FieldRule,
    SchemaRegistry,
    SystemDescriptor,
    SystemSummary,
)

__all__ = [
    "CanonicalType",
    "CompatibleTarget",
    "EntityDescriptor",
    "FieldRule",
    "RegistryProvider",
    "SchemaRegistry",
    "SystemDescriptor",
    "SystemSummary",
]
