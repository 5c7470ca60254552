"""
Record codec -- frozen domain records <-> JSON-safe dicts.

Encoding is driven by the dataclass type hints, so adding a field to a
record needs no codec change:

    UUID     <-> "3f2c..."            Decimal <-> "12.50"
    datetime <-> ISO-8601 with offset date    <-> "2024-01-01"

Decoding ignores unknown keys (forward compatibility) and lets missing
optional keys fall back to the dataclass default.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from datetime import date, datetime
from decimal import Decimal
from functools import cache
from typing import Any, TypeVar, get_args, get_type_hints
from uuid import UUID

T = TypeVar("T")

_DECODERS: dict[type, typing.Callable[[Any], Any]] = {
    UUID: UUID,
    datetime: datetime.fromisoformat,
    date: date.fromisoformat,
    Decimal: Decimal,
    int: int,
    bool: bool,
    str: str,
}


def _encode_value(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def encode_record(record: Any) -> dict[str, Any]:
    """Dataclass instance -> dict of JSON-native values."""
    return {
        f.name: _encode_value(getattr(record, f.name))
        for f in dataclasses.fields(record)
    }


def _unwrap_optional(hint: Any) -> Any:
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


@cache
def _field_decoders(cls: type) -> dict[str, typing.Callable[[Any], Any]]:
    hints = get_type_hints(cls)
    decoders = {}
    for f in dataclasses.fields(cls):
        target = _unwrap_optional(hints[f.name])
        decoders[f.name] = _DECODERS[target]
    return decoders


def decode_record(cls: type[T], data: dict[str, Any]) -> T:
    """
    dict -> dataclass instance.

    Raises:
        TypeError: a required field is missing.
        ValueError / decimal.InvalidOperation: a value cannot be parsed.
        ShiftValidationError: the record's own invariants reject it.
    """
    decoders = _field_decoders(cls)
    kwargs = {}
    for name, decode in decoders.items():
        if name not in data:
            continue
        raw = data[name]
        kwargs[name] = None if raw is None else decode(raw)
    return cls(**kwargs)
