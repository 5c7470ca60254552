"""
ShiftService -- manual shift entry, edit and delete.

Responsibility:
    The add-shift and edit-shift screens' write path.  Every create and
    edit goes through ``build_manual_shift`` so the four stored derived
    fields are always recomputed together from their sources.

Architecture position:
    Kernel > Services -- imperative shell over a ShiftStore.

Invariants enforced:
    - An edit keeps ``id``, ``created_at`` and ``auto_closed``; everything
      else, including local_date and pay, is rebuilt.
    - An edit that leaves day and clock times alone keeps the stored
      start/end instants to the second.
    - Workplace and wage are only validated on create, or on an edit that
      changes them.
    - Delete requires explicit confirmation.

Failure modes:
    - ShiftValidationError for missing workplace, wage <= 0, or no worked
      time after overnight normalization and break deduction.
    - ShiftNotFoundError when editing or deleting a vanished shift.
    - ConfirmationRequiredError from delete() without confirmed=True.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import tzinfo
from typing import Any
from uuid import UUID, uuid4

from shift_kernel.domain.clock import Clock, SystemClock
from shift_kernel.domain.records import Shift
from shift_kernel.domain.shift_builder import ShiftDraft, build_manual_shift
from shift_kernel.exceptions import (
    ConfirmationRequiredError,
    ShiftNotFoundError,
    ShiftValidationError,
)
from shift_kernel.logging_config import LogContext, get_logger
from shift_kernel.stores.base import ShiftStore

logger = get_logger("services.shift")


class ShiftService:
    """
    Create, edit and delete shifts entered by hand.

    Contract:
        Accepts ShiftDraft values (the form contents) and persists
        finished Shift records through the injected ShiftStore.

    Non-goals:
        - Does NOT touch the active punch.
        - Does NOT resolve defaults; the form already holds them.
    """

    def __init__(
        self,
        shift_store: ShiftStore,
        clock: Clock | None = None,
        tz: tzinfo | None = None,
    ):
        self._shifts = shift_store
        self._clock = clock or SystemClock()
        self._tz = tz

    def create(self, draft: ShiftDraft) -> Shift:
        """Validate ``draft`` and append it as a new shift."""
        try:
            shift = build_manual_shift(
                draft, shift_id=uuid4(), now=self._clock.now(), tz=self._tz
            )
        except ShiftValidationError as exc:
            logger.warning(
                "shift_rejected",
                extra={"field": exc.field, "reason": exc.reason},
            )
            raise

        self._shifts.append(shift)
        with LogContext.bind(shift_id=str(shift.id)):
            logger.info(
                "shift_created",
                extra={
                    "local_date": shift.local_date.isoformat(),
                    "worked_minutes": shift.worked_minutes,
                    "total_earned": str(shift.total_earned),
                },
            )
        return shift

    def draft_for(self, shift_id: UUID) -> ShiftDraft:
        """Pre-fill the edit form for a stored shift."""
        return ShiftDraft.from_shift(self._require(shift_id), self._tz)

    def edit(
        self,
        shift_id: UUID,
        draft: ShiftDraft | None = None,
        **changes: Any,
    ) -> Shift:
        """
        Rebuild a stored shift from a draft.

        Either pass a full ``draft`` or keyword ``changes`` applied to the
        stored shift's own draft (e.g. ``edit(id, cash_tips=20)``); both
        may be combined.

        Raises:
            ShiftNotFoundError: the shift no longer exists.
            ShiftValidationError: the edited values are invalid.
        """
        existing = self._require(shift_id)
        previous = ShiftDraft.from_shift(existing, self._tz)
        base = draft if draft is not None else previous
        if changes:
            base = replace(base, **changes)

        with LogContext.bind(shift_id=str(shift_id)):
            try:
                shift = build_manual_shift(
                    base,
                    shift_id=existing.id,
                    now=self._clock.now(),
                    created_at=existing.created_at,
                    auto_closed=existing.auto_closed,
                    previous=previous,
                    tz=self._tz,
                )
            except ShiftValidationError as exc:
                logger.warning(
                    "shift_edit_rejected",
                    extra={"field": exc.field, "reason": exc.reason},
                )
                raise

            self._shifts.update(shift_id, shift)
            logger.info(
                "shift_updated",
                extra={
                    "worked_minutes": shift.worked_minutes,
                    "total_earned": str(shift.total_earned),
                },
            )
        return shift

    def delete(self, shift_id: UUID, confirmed: bool = False) -> None:
        """
        Raises:
            ConfirmationRequiredError: ``confirmed`` is not True.
            ShiftNotFoundError: the shift no longer exists.
        """
        if not confirmed:
            raise ConfirmationRequiredError("delete_shift")
        self._shifts.remove(shift_id)
        with LogContext.bind(shift_id=str(shift_id)):
            logger.info("shift_deleted")

    def _require(self, shift_id: UUID) -> Shift:
        shift = self._shifts.get(shift_id)
        if shift is None:
            raise ShiftNotFoundError(str(shift_id))
        return shift
