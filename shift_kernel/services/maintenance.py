"""
MaintenanceService -- backup, restore and reset of all stored data.

Backup payload:

    {
      "version": 1,
      "app": "shift_kernel",
      "exported_at": "2024-01-01T12:00:00+00:00",
      "data": {"shifts_v1": {...}, "profile_v1": {...}, ...}
    }

Keys absent from storage are exported as null and skipped on restore.  The
active punch is not part of a backup; reset clears it through its store so
subscribers see the change.
"""

from __future__ import annotations

import json
from typing import Any

from shift_kernel.domain.clock import Clock, SystemClock
from shift_kernel.exceptions import ConfirmationRequiredError, ShiftValidationError
from shift_kernel.logging_config import get_logger
from shift_kernel.services.catalog_service import PROFILE_KEY, ROLES_KEY, WORKPLACES_KEY
from shift_kernel.stores.base import ActivePunchStore
from shift_kernel.stores.json_store import SCHEMA_VERSION, SHIFTS_KEY
from shift_kernel.stores.kv import KeyValueBackend

logger = get_logger("services.maintenance")

BACKUP_APP = "shift_kernel"
BACKUP_KEYS = (SHIFTS_KEY, PROFILE_KEY, WORKPLACES_KEY, ROLES_KEY)


class MaintenanceService:
    """Whole-dataset operations; restore and reset need confirmation."""

    def __init__(
        self,
        backend: KeyValueBackend,
        active_store: ActivePunchStore | None = None,
        clock: Clock | None = None,
    ):
        self._backend = backend
        self._active = active_store
        self._clock = clock or SystemClock()

    def export_backup(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key in BACKUP_KEYS:
            raw = self._backend.get(key)
            data[key] = None if raw is None else json.loads(raw)
        payload = {
            "version": SCHEMA_VERSION,
            "app": BACKUP_APP,
            "exported_at": self._clock.now().isoformat(),
            "data": data,
        }
        logger.info(
            "backup_exported",
            extra={"keys": sorted(k for k, v in data.items() if v is not None)},
        )
        return payload

    def restore_backup(self, payload: dict[str, Any], confirmed: bool = False) -> list[str]:
        """
        Overwrite stored data with a backup payload.

        Returns:
            The keys that were written.

        Raises:
            ConfirmationRequiredError: ``confirmed`` is not True.
            ShiftValidationError: ``payload`` is not a backup of this app.
        """
        if not confirmed:
            raise ConfirmationRequiredError("restore_backup")
        if not isinstance(payload, dict) or payload.get("app") != BACKUP_APP:
            raise ShiftValidationError("backup", "not a shift_kernel backup")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ShiftValidationError("backup", "missing data section")

        written = []
        for key in BACKUP_KEYS:
            if data.get(key) is not None:
                self._backend.set(key, json.dumps(data[key], sort_keys=True))
                written.append(key)
        logger.warning("backup_restored", extra={"keys": written})
        return written

    def reset_all_data(self, confirmed: bool = False) -> None:
        """
        Delete every stored record, including a running punch.

        Raises:
            ConfirmationRequiredError: ``confirmed`` is not True.
        """
        if not confirmed:
            raise ConfirmationRequiredError("reset_all_data")
        if self._active is not None:
            self._active.clear()
        self._backend.clear()
        logger.warning("data_reset")
