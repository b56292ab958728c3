"""Registry document adapter: load, validate and translate schema registries."""

from __future__ import annotations

from .loader import load_registry, load_registry_document
from .schema import (
    CanonicalTypeDocument,
    EntityDocument,
    FieldRuleDocument,
    RegistryDocument,
    SystemDocument,
)
from .translator import translate_registry

__all__ = [
    "CanonicalTypeDocument",
    "EntityDocument",
    "FieldRuleDocument",
    "RegistryDocument",
    "SystemDocument",
    "load_registry",
    "load_registry_document",
    "translate_registry",
]
