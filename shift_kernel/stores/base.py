"""
Store contracts -- what the kernel needs from persistence.

Responsibility:
    Declares the ShiftStore and ActivePunchStore interfaces the lifecycle
    and services are written against, plus the synchronous lookup
    providers the defaults resolver is fed from.

Architecture position:
    Kernel > Stores.  Imports domain records only.  Implementations live in
    json_store.py; tests may supply their own.

Invariants enforced:
    - Reads return point-in-time snapshots (immutable records / new lists).
    - ActivePunchStore holds at most one punch.
    - ActivePunchStore listeners are notified only after a write succeeded.

Failure modes:
    - Implementations raise PersistenceError for backend failures and never
      swallow them on writes.
    - ShiftStore.update/remove raise ShiftNotFoundError for unknown ids.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Protocol
from uuid import UUID

from shift_kernel.domain.records import ActivePunch, Profile, Role, Shift, Workplace
from shift_kernel.logging_config import get_logger

logger = get_logger("stores")

PunchListener = Callable[[ActivePunch | None], None]


class ShiftStore(ABC):
    """Collection of finalized shifts."""

    @abstractmethod
    def append(self, shift: Shift) -> Shift:
        """Add a new shift."""

    @abstractmethod
    def list(self) -> list[Shift]:
        """All shifts, newest start first."""

    @abstractmethod
    def get(self, shift_id: UUID) -> Shift | None:
        """One shift, or None."""

    @abstractmethod
    def update(self, shift_id: UUID, shift: Shift) -> Shift:
        """Replace a stored shift wholesale."""

    @abstractmethod
    def remove(self, shift_id: UUID) -> None:
        """Delete a stored shift."""


class ActivePunchStore(ABC):
    """
    The single active-punch slot, with change notification.

    Subclasses implement ``get``, ``_save`` and ``_delete``; ``set`` and
    ``clear`` wrap them and notify subscribers once the write succeeded.
    """

    def __init__(self) -> None:
        self._listeners: list[PunchListener] = []
        self._listeners_lock = threading.Lock()

    @abstractmethod
    def get(self) -> ActivePunch | None:
        """The active punch, or None when idle."""

    @abstractmethod
    def _save(self, punch: ActivePunch) -> None: ...

    @abstractmethod
    def _delete(self) -> None: ...

    def set(self, punch: ActivePunch) -> ActivePunch:
        self._save(punch)
        self._notify(punch)
        return punch

    def clear(self) -> None:
        self._delete()
        self._notify(None)

    def subscribe(self, listener: PunchListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            A callable that unsubscribes the listener (safe to call twice).
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, punch: ActivePunch | None) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(punch)
            except Exception:
                # The write already succeeded; a broken screen must not undo it.
                logger.exception(
                    "punch_listener_failed",
                    extra={"listener": getattr(listener, "__qualname__", repr(listener))},
                )


# ---------------------------------------------------------------------------
# Lookup providers (synchronous, by id)
# ---------------------------------------------------------------------------


class ProfileProvider(Protocol):
    def get_profile(self) -> Profile | None: ...


class WorkplaceProvider(Protocol):
    def get_workplace(self, workplace_id: UUID) -> Workplace | None: ...


class RoleProvider(Protocol):
    def get_role(self, role_id: UUID) -> Role | None: ...
