"""Core data types for the clubportal application."""

from __future__ import annotations

import datetime
from typing import Any, Optional

from clubportal.errors import SchemaError

_MISSING = object()


def read_field(
    data: dict[str, Any],
    key: str,
    kind: type | tuple[type, ...],
    *,
    default: Any = _MISSING,
) -> Any:
    """Read ``key`` from a stored document, checking its type.

    A missing or null value returns ``default`` when one is given and raises
    :class:`SchemaError` otherwise.
    """
    value = data.get(key)
    if value is None:
        if default is _MISSING:
            raise SchemaError(f"Missing field '{key}'.")
        return default
    # bool is an int subclass; keep the two apart.
    if isinstance(value, bool) and bool not in _as_tuple(kind):
        raise SchemaError(f"Field '{key}' has type bool.")
    if not isinstance(value, kind):
        raise SchemaError(f"Field '{key}' has type {type(value).__name__}.")
    return value


def read_timestamp(data: dict[str, Any], key: str) -> Optional[datetime.datetime]:
    """Read an optional timestamp field."""
    return read_field(data, key, datetime.datetime, default=None)


def utcnow() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def _as_tuple(kind: type | tuple[type, ...]) -> tuple[type, ...]:
    return kind if isinstance(kind, tuple) else (kind,)
