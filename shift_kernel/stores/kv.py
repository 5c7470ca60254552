"""
Key-value backends -- the minimal persistence surface under every store.

Responsibility:
    A string-keyed, string-valued blob store.  The JSON stores serialize
    whole collections into one value per key, so the backend never needs
    to know what a shift is.

Implementations:
    MemoryKeyValueBackend -- dict in process memory (tests, previews).
    SqlKeyValueBackend    -- one ``kv_entries`` table through SQLAlchemy;
                             each write commits in its own session_scope().

Failure modes:
    - SqlKeyValueBackend wraps every SQLAlchemyError in PersistenceError
      (original exception chained as __cause__).
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from shift_kernel.db.engine import session_scope
from shift_kernel.domain.clock import Clock, SystemClock
from shift_kernel.exceptions import PersistenceError
from shift_kernel.logging_config import get_logger
from shift_kernel.models.kv_entry import KeyValueEntry

logger = get_logger("stores.kv")


class KeyValueBackend(ABC):
    """Minimal blob store: get / set / remove by key."""

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; a missing key is not an error."""

    @abstractmethod
    def keys(self) -> list[str]: ...

    @abstractmethod
    def clear(self) -> None:
        """Delete every key."""


class MemoryKeyValueBackend(KeyValueBackend):
    """Process-local backend."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class SqlKeyValueBackend(KeyValueBackend):
    """
    Backend over the ``kv_entries`` table.

    Contract:
        Each call runs in its own transaction via session_scope(); a failed
        write is rolled back and surfaces as PersistenceError.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def get(self, key: str) -> str | None:
        try:
            with session_scope(self._session_factory) as session:
                row = session.get(KeyValueEntry, key)
                return row.value if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError("read", key, str(exc)) from exc

    def set(self, key: str, value: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                row = session.get(KeyValueEntry, key)
                if row is None:
                    session.add(
                        KeyValueEntry(key=key, value=value, updated_at=self._clock.now())
                    )
                else:
                    row.value = value
                    row.updated_at = self._clock.now()
        except SQLAlchemyError as exc:
            raise PersistenceError("write", key, str(exc)) from exc
        logger.debug("kv_written", extra={"key": key, "size": len(value)})

    def remove(self, key: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        except SQLAlchemyError as exc:
            raise PersistenceError("delete", key, str(exc)) from exc

    def keys(self) -> list[str]:
        try:
            with session_scope(self._session_factory) as session:
                return list(
                    session.scalars(select(KeyValueEntry.key).order_by(KeyValueEntry.key))
                )
        except SQLAlchemyError as exc:
            raise PersistenceError("read") from exc

    def clear(self) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.execute(delete(KeyValueEntry))
        except SQLAlchemyError as exc:
            raise PersistenceError("delete") from exc
