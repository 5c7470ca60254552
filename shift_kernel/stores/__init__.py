"""
Persistence layer.

Contracts (base.py) are what services depend on; json_store.py provides
the implementations over any KeyValueBackend (kv.py).
"""

from shift_kernel.stores.base import (
    ActivePunchStore,
    ProfileProvider,
    PunchListener,
    RoleProvider,
    ShiftStore,
    WorkplaceProvider,
)
from shift_kernel.stores.json_store import (
    ACTIVE_PUNCH_KEY,
    SHIFTS_KEY,
    JsonActivePunchStore,
    JsonCollection,
    JsonShiftStore,
)
from shift_kernel.stores.kv import (
    KeyValueBackend,
    MemoryKeyValueBackend,
    SqlKeyValueBackend,
)

__all__ = [
    "ACTIVE_PUNCH_KEY",
    "SHIFTS_KEY",
    "ActivePunchStore",
    "JsonActivePunchStore",
    "JsonCollection",
    "JsonShiftStore",
    "KeyValueBackend",
    "MemoryKeyValueBackend",
    "ProfileProvider",
    "PunchListener",
    "RoleProvider",
    "ShiftStore",
    "SqlKeyValueBackend",
    "WorkplaceProvider",
]
