"""Read and write values at dotted paths inside JSON-like records.

A record is a structured value: a mapping of values, a list of values, or a
scalar. Paths are dot-delimited property names; a segment made of digits
addresses a list element (``lines.0.amount``).
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from enum import Enum
from functools import lru_cache
from typing import Any, Final, Literal

from unisync.domain.errors import PathConflictError

SEPARATOR: Final[str] = "."


class _Missing(Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing.MISSING
type Missing = Literal[_Missing.MISSING]


@lru_cache(maxsize=1024)
def split_path(path: str) -> tuple[str, ...]:
    """Split ``path`` into segments, rejecting empty or blank segments."""

    if not isinstance(path, str) or not path:
        raise PathConflictError(f"Invalid field path {path!r}")
    segments = tuple(path.split(SEPARATOR))
    if any(not segment.strip() for segment in segments):
        raise PathConflictError(f"Invalid field path {path!r}: empty segment")
    return segments


def _index(segment: str) -> int | None:
    return int(segment) if segment.isdigit() else None


def get[T](record: Any, path: str, default: T | None = None) -> Any | T | None:
    """Return the value at ``path`` or ``default`` if any step along the way is absent.

    Never raises for a missing or ``None`` intermediate; the lookup simply stops.
    An explicit ``None`` at the leaf is returned as ``None``.
    """

    current: Any = record
    for segment in split_path(path):
        if current is None:
            return default
        if isinstance(current, Mapping):
            if segment not in current:
                return default
            current = current[segment]
            continue
        index = _index(segment)
        if isinstance(current, list) and index is not None and index < len(current):
            current = current[index]
            continue
        return default
    return current


def set(record: MutableMapping[str, Any], path: str, value: Any) -> None:  # noqa: A001
    """Write ``value`` at ``path``, creating intermediate mappings as needed.

    Raises :class:`PathConflictError` instead of overwriting an intermediate
    scalar. A ``None`` intermediate counts as absent and is replaced.
    """

    segments = split_path(path)
    current: Any = record
    for position, segment in enumerate(segments[:-1]):
        nxt = _child(current, segment, path)
        if nxt is None:
            nxt = {}
            _assign(current, segment, nxt, path)
        elif not isinstance(nxt, (MutableMapping, list)):
            taken = SEPARATOR.join(segments[: position + 1])
            raise PathConflictError(
                f"Cannot set {path!r}: {taken!r} already holds a {type(nxt).__name__}"
            )
        current = nxt
    _assign(current, segments[-1], value, path)


def _child(container: Any, segment: str, path: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(segment)
    index = _index(segment)
    if isinstance(container, list) and index is not None:
        if index >= len(container):
            raise PathConflictError(f"Cannot set {path!r}: list index {index} out of range")
        return container[index]
    raise PathConflictError(f"Cannot set {path!r}: {segment!r} is not addressable")


def _assign(container: Any, segment: str, value: Any, path: str) -> None:
    if isinstance(container, MutableMapping):
        container[segment] = value
        return
    index = _index(segment)
    if isinstance(container, list) and index is not None and index < len(container):
        container[index] = value
        return
    raise PathConflictError(f"Cannot set {path!r}: {segment!r} is not addressable")
