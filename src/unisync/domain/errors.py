"""Error taxonomy for the synchronization engine.

Configuration errors are fatal and non-retryable; they surface at registry load
time. Everything else derives from :class:`SyncEngineError` and is raised from
individual operations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from unisync.config.errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID


class UnknownMappingError(ConfigurationError):
    """Raised when a (system, entity type) pair is not registered."""

    def __init__(self, system: str, entity_type: str) -> None:
        super().__init__(f"Entity {entity_type} not found in system {system}")
        self.system = system
        self.entity_type = entity_type


class UnknownCanonicalTypeError(ConfigurationError):
    """Raised when a canonical type name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Canonical type {name} not found in schema registry")
        self.name = name


class DanglingFieldReferenceError(ConfigurationError):
    """Raised when a field rule points at a canonical field its type does not declare."""


class PathConflictError(ConfigurationError):
    """Raised for malformed paths or writes that would pass through a scalar."""


class RegistryLoadError(ConfigurationError):
    """Raised when the registry document cannot be read, fetched or parsed."""


class RegistryValidationError(ConfigurationError):
    """Raised when a registry document fails validation; lists every problem found."""

    def __init__(self, problems: Sequence[str]) -> None:
        self.problems = tuple(problems)
        listing = "\n  - ".join(self.problems)
        count = len(self.problems)
        super().__init__(f"Invalid schema registry ({count} problem(s)):\n  - {listing}")


class SyncEngineError(Exception):
    """Root of runtime errors raised by engine operations."""


class MissingSourceIdError(SyncEngineError):
    """Raised when a record has no source id and its descriptor declares no primary key."""


class NotFoundError(SyncEngineError):
    """Raised when a referenced record does not exist."""


class EntityNotFoundError(NotFoundError):
    def __init__(self, entity_id: UUID, *, inactive: bool = False) -> None:
        state = "inactive" if inactive else "not found"
        super().__init__(f"Canonical entity {entity_id} {state}")
        self.entity_id = entity_id
        self.inactive = inactive


class MappingNotFoundError(NotFoundError):
    def __init__(self, mapping_id: UUID) -> None:
        super().__init__(f"Entity mapping {mapping_id} not found")
        self.mapping_id = mapping_id


class PersistenceError(SyncEngineError):
    """Raised when the durable store is unavailable or rejects a write."""


class InvalidTransitionError(SyncEngineError):
    """Raised for a sync status change the state machine does not allow."""


__all__ = [
    "ConfigurationError",
    "DanglingFieldReferenceError",
    "EntityNotFoundError",
    "InvalidTransitionError",
    "MappingNotFoundError",
    "MissingConfigurationError",
    "MissingSourceIdError",
    "NotFoundError",
    "PathConflictError",
    "PersistenceError",
    "RegistryLoadError",
    "RegistryValidationError",
    "SyncEngineError",
    "UnknownCanonicalTypeError",
    "UnknownMappingError",
]
