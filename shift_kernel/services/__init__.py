"""
Kernel services -- the imperative shell around the pure domain.

Services receive their stores and Clock by constructor injection and own
every write the UI can trigger.
"""

from shift_kernel.services.catalog_service import UNSET, CatalogService
from shift_kernel.services.maintenance import MaintenanceService
from shift_kernel.services.punch_lifecycle import (
    AUTO_CLOSE_MARKER,
    MAX_SHIFT_DURATION,
    AutoCloseResult,
    PunchLifecycle,
    PunchState,
)
from shift_kernel.services.shift_service import ShiftService

__all__ = [
    "AUTO_CLOSE_MARKER",
    "AutoCloseResult",
    "CatalogService",
    "MAX_SHIFT_DURATION",
    "MaintenanceService",
    "PunchLifecycle",
    "PunchState",
    "ShiftService",
    "UNSET",
]
