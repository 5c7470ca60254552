"""
JSON-blob stores over a KeyValueBackend.

Responsibility:
    Implements ShiftStore and ActivePunchStore by serializing records with
    the codec into one JSON document per key:

        shifts_v1        {"version": 1, "items": [<shift>, ...]}
        active_punch_v1  {"version": 1, "item": <punch>}

    JsonCollection is the shared read-modify-write helper; CatalogService
    uses it for workplaces and roles as well.

Invariants enforced:
    - Every read-modify-write runs under the store's lock, so two writers in
      one process cannot interleave and lose an update.
    - Reads decode fresh records each time (point-in-time snapshots).

Failure modes:
    - PersistenceError("decode") when a stored blob is corrupt.
    - Backend PersistenceErrors propagate unchanged.
    - DuplicateShiftError when append() sees an id already stored.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from decimal import InvalidOperation
from typing import Any, Generic, TypeVar
from uuid import UUID

from shift_kernel.domain.records import ActivePunch, Shift
from shift_kernel.exceptions import (
    DuplicateShiftError,
    PersistenceError,
    ShiftNotFoundError,
    ShiftValidationError,
)
from shift_kernel.logging_config import get_logger
from shift_kernel.stores.base import ActivePunchStore, ShiftStore
from shift_kernel.stores.codec import decode_record, encode_record
from shift_kernel.stores.kv import KeyValueBackend

logger = get_logger("stores.json")

SCHEMA_VERSION = 1

SHIFTS_KEY = "shifts_v1"
ACTIVE_PUNCH_KEY = "active_punch_v1"

_DECODE_ERRORS = (
    json.JSONDecodeError,
    KeyError,
    TypeError,
    ValueError,
    InvalidOperation,
    ShiftValidationError,
)

R = TypeVar("R")


def _dumps(document: dict[str, Any]) -> str:
    return json.dumps(document, separators=(",", ":"), sort_keys=True)


class JsonCollection(Generic[R]):
    """A list of records of one type stored under one key."""

    def __init__(self, backend: KeyValueBackend, key: str, record_type: type[R]):
        self.backend = backend
        self.key = key
        self.record_type = record_type
        self.lock = threading.RLock()

    def load(self) -> list[R]:
        raw = self.backend.get(self.key)
        if raw is None:
            return []
        try:
            document = json.loads(raw)
            return [decode_record(self.record_type, item) for item in document["items"]]
        except _DECODE_ERRORS as exc:
            logger.error("blob_decode_failed", extra={"key": self.key})
            raise PersistenceError("decode", self.key, str(exc)) from exc

    def save(self, records: list[R]) -> None:
        document = {
            "version": SCHEMA_VERSION,
            "items": [encode_record(r) for r in records],
        }
        self.backend.set(self.key, _dumps(document))

    def mutate(self, change: Callable[[list[R]], list[R]]) -> list[R]:
        """Load, apply ``change``, save -- atomically within this process."""
        with self.lock:
            records = change(self.load())
            self.save(records)
            return records


class JsonShiftStore(ShiftStore):
    """ShiftStore persisted as one JSON array."""

    def __init__(self, backend: KeyValueBackend, key: str = SHIFTS_KEY):
        self._shifts = JsonCollection(backend, key, Shift)

    def append(self, shift: Shift) -> Shift:
        def change(shifts: list[Shift]) -> list[Shift]:
            if any(s.id == shift.id for s in shifts):
                raise DuplicateShiftError(str(shift.id), self._shifts.key)
            return [shift, *shifts]

        self._shifts.mutate(change)
        return shift

    def list(self) -> list[Shift]:
        with self._shifts.lock:
            shifts = self._shifts.load()
        return sorted(shifts, key=lambda s: s.start_time, reverse=True)

    def get(self, shift_id: UUID) -> Shift | None:
        with self._shifts.lock:
            shifts = self._shifts.load()
        return next((s for s in shifts if s.id == shift_id), None)

    def update(self, shift_id: UUID, shift: Shift) -> Shift:
        def change(shifts: list[Shift]) -> list[Shift]:
            if not any(s.id == shift_id for s in shifts):
                raise ShiftNotFoundError(str(shift_id))
            return [shift if s.id == shift_id else s for s in shifts]

        self._shifts.mutate(change)
        return shift

    def remove(self, shift_id: UUID) -> None:
        def change(shifts: list[Shift]) -> list[Shift]:
            kept = [s for s in shifts if s.id != shift_id]
            if len(kept) == len(shifts):
                raise ShiftNotFoundError(str(shift_id))
            return kept

        self._shifts.mutate(change)


class JsonActivePunchStore(ActivePunchStore):
    """The active-punch slot persisted as one JSON object."""

    def __init__(self, backend: KeyValueBackend, key: str = ACTIVE_PUNCH_KEY):
        super().__init__()
        self._backend = backend
        self._key = key

    def get(self) -> ActivePunch | None:
        raw = self._backend.get(self._key)
        if raw is None:
            return None
        try:
            return decode_record(ActivePunch, json.loads(raw)["item"])
        except _DECODE_ERRORS as exc:
            logger.error("blob_decode_failed", extra={"key": self._key})
            raise PersistenceError("decode", self._key, str(exc)) from exc

    def _save(self, punch: ActivePunch) -> None:
        document = {"version": SCHEMA_VERSION, "item": encode_record(punch)}
        self._backend.set(self._key, _dumps(document))

    def _delete(self) -> None:
        self._backend.remove(self._key)
