"""Process-wide holder for the active schema registry."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING

from unisync.domain.errors import ConfigurationError

if TYPE_CHECKING:
    from .registry import SchemaRegistry

log = getLogger(__name__)


class RegistryProvider:
    """Read-only registry with an explicit, serialized swap.

    Readers call :meth:`current` once per operation and keep that snapshot for
    the whole operation, so a swap never affects work already in flight.
    """

    def __init__(self, registry: SchemaRegistry | None = None) -> None:
        self._registry = registry
        self._swap_lock = threading.Lock()
        self._generation = 0 if registry is None else 1

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loaded(self) -> bool:
        return self._registry is not None

    def current(self) -> SchemaRegistry:
        registry = self._registry
        if registry is None:
            raise ConfigurationError("Schema registry has not been loaded")
        return registry

    def swap(self, registry: SchemaRegistry) -> SchemaRegistry | None:
        """Install ``registry`` and return the one it replaced."""

        with self._swap_lock:
            previous = self._registry
            self._registry = registry
            self._generation += 1
        log.info(
            "Schema registry swapped (generation %s): %s systems, %s canonical types",
            self._generation,
            len(registry.systems),
            len(registry.canonical_types),
        )
        return previous
