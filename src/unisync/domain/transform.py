"""Coerce raw source scalars into their canonical representation.

All functions are pure and total over non-``None`` input: a value that fails
strict parsing degrades to a documented fallback instead of raising. The
caller is told about the fallback through :class:`Transformed`.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING, Any, Final, Literal

from unisync.domain.model import FieldKind

if TYPE_CHECKING:
    from collections.abc import Callable


class _Invalid(Enum):
    INVALID = "INVALID"

    def __repr__(self) -> str:
        return "INVALID"


INVALID: Final = _Invalid.INVALID
"""Sentinel for values that cannot be represented at all (e.g. unparsable timestamps)."""

type Invalid = Literal[_Invalid.INVALID]

UNPARSABLE_DECIMAL: Final[str] = "unparsable_decimal"
UNPARSABLE_INTEGER: Final[str] = "unparsable_integer"
INVALID_TIMESTAMP: Final[str] = "invalid_timestamp"

_INTEGER_RE = re.compile(r"[+-]?\d+")


@dataclass(frozen=True, slots=True)
class Transformed:
    value: Any
    degradation: str | None = None

    @property
    def degraded(self) -> bool:
        return self.degradation is not None


def transform(value: Any, kind: FieldKind, remap: Mapping[str, Any] | None = None) -> Any:
    """Return the canonical representation of ``value`` for ``kind``."""

    return transform_with_report(value, kind, remap).value


def transform_with_report(
    value: Any,
    kind: FieldKind,
    remap: Mapping[str, Any] | None = None,
) -> Transformed:
    """Like :func:`transform`, but also report whether a lenient fallback was used."""

    if kind is FieldKind.ENUMERATED:
        return Transformed(_to_enumerated(value, remap))
    return _HANDLERS[kind](value)


def _to_string(value: Any) -> Transformed:
    if isinstance(value, bool):
        return Transformed("true" if value else "false")
    return Transformed(str(value))


def _to_boolean(value: Any) -> Transformed:
    return Transformed(bool(value))


def _to_decimal(value: Any) -> Transformed:
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return Transformed(0.0, UNPARSABLE_DECIMAL)
    if not math.isfinite(number):
        return Transformed(0.0, UNPARSABLE_DECIMAL)
    return Transformed(number)


def _to_integer(value: Any) -> Transformed:
    if isinstance(value, bool):
        return Transformed(int(value))
    if isinstance(value, int):
        return Transformed(value)
    text = value.strip() if isinstance(value, str) else value
    if isinstance(text, str) and _INTEGER_RE.fullmatch(text):
        return Transformed(int(text))
    try:
        return Transformed(int(float(text)))
    except (TypeError, ValueError, OverflowError):
        return Transformed(0, UNPARSABLE_INTEGER)


def _to_timestamp(value: Any) -> Transformed:
    parsed = _parse_timestamp(value)
    if parsed is None:
        return Transformed(INVALID, INVALID_TIMESTAMP)
    return Transformed(parsed.isoformat())


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        normalized = value.strip()
        if normalized.endswith(("Z", "z")):
            normalized = normalized[:-1] + "+00:00"
        try:
            return _as_utc(datetime.fromisoformat(normalized))
        except ValueError:
            return None
    return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_structured(value: Any) -> Transformed:
    if isinstance(value, Mapping):
        return Transformed(dict(value))
    return Transformed({"raw": str(value)})


def _to_enumerated(value: Any, remap: Mapping[str, Any] | None) -> Any:
    if not remap:
        return value
    try:
        if value in remap:
            return remap[value]
    except TypeError:
        # unhashable values cannot be remapped
        return value
    key = _to_string(value).value
    if key in remap:
        return remap[key]
    return value


_HANDLERS: Final[dict[FieldKind, Callable[[Any], Transformed]]] = {
    FieldKind.STRING: _to_string,
    FieldKind.BOOLEAN: _to_boolean,
    FieldKind.DECIMAL: _to_decimal,
    FieldKind.INTEGER: _to_integer,
    FieldKind.TIMESTAMP: _to_timestamp,
    FieldKind.STRUCTURED: _to_structured,
}
