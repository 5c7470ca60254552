"""
PunchLifecycle -- the punch-in / punch-out state machine.

Responsibility:
    Owns the single active punch: starting it, finalizing it into a Shift
    (manual stop or the 14-hour auto-close), discarding it, and editing its
    locked fields.

Architecture position:
    Kernel > Services -- imperative shell.  Talks to ActivePunchStore and
    ShiftStore; all arithmetic is delegated to domain.shift_builder.

State machine:

    IDLE --start()--> ACTIVE
    ACTIVE --stop()--> IDLE              (Shift appended, auto_closed=False)
    ACTIVE --check_auto_close()--> IDLE  (only when elapsed >= 14h)
    ACTIVE --cancel(confirmed=True)--> IDLE   (no Shift)

Invariants enforced:
    - At most one active punch; start() while ACTIVE raises
      ActivePunchConflictError.
    - Finalization happens at most once per punch.  stop, check_auto_close
      and cancel serialize on one lock and re-read the slot under it, so the
      loser of a race observes IDLE and does nothing.
    - An auto-closed shift ends at started_at + 14h exactly, never at "now".
    - Wage, break and unpaid-break are locked at punch-in.

Failure modes:
    - ShiftValidationError from stop() when the clock has not moved past
      started_at.  The punch stays ACTIVE.
    - PersistenceError when appending the shift fails (punch stays ACTIVE)
      or when clearing the slot fails (the appended shift is removed again
      before the error propagates).
    - ConfirmationRequiredError from cancel() without confirmed=True.
    - NoActivePunchError from update_active() while IDLE.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from uuid import uuid4

from shift_kernel.domain.clock import Clock, SystemClock
from shift_kernel.domain.defaults import ResolvedDefaults
from shift_kernel.domain.inputs import clamp_break_minutes, non_negative
from shift_kernel.domain.money import Amount
from shift_kernel.domain.records import ActivePunch, Role, Shift, Workplace
from shift_kernel.domain.shift_builder import finalize_shift
from shift_kernel.domain.time_math import elapsed as elapsed_between
from shift_kernel.exceptions import (
    ActivePunchConflictError,
    ConfirmationRequiredError,
    NoActivePunchError,
    PersistenceError,
    ShiftKernelError,
    ShiftValidationError,
)
from shift_kernel.logging_config import LogContext, get_logger
from shift_kernel.stores.base import ActivePunchStore, ShiftStore

logger = get_logger("services.punch")

MAX_SHIFT_DURATION = timedelta(hours=14)
AUTO_CLOSE_MARKER = "Auto-closed after 14 hours (forgot punch out)"


class PunchState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True, slots=True)
class AutoCloseResult:
    """Outcome of check_auto_close(); ``shift`` is set only when closed."""

    closed: bool
    shift: Shift | None = None


def _clean_note(note: str | None) -> str | None:
    if note is None:
        return None
    return note.strip() or None


class PunchLifecycle:
    """
    Start, stop, auto-close and cancel the active punch.

    Contract:
        One instance per process wraps one ActivePunchStore/ShiftStore pair.
        UI code calls ``check_auto_close()`` on focus and on a timer tick.

    Guarantees:
        - Each finalize appends exactly one Shift, then clears the slot.
        - Calls that find the slot empty are no-ops (stop -> None,
          check_auto_close -> closed=False, cancel -> False).

    Non-goals:
        - Does NOT resolve defaults; the caller passes ResolvedDefaults.
        - Does NOT schedule the auto-close check.
    """

    def __init__(
        self,
        active_store: ActivePunchStore,
        shift_store: ShiftStore,
        clock: Clock | None = None,
        tz: tzinfo | None = None,
    ):
        self._active = active_store
        self._shifts = shift_store
        self._clock = clock or SystemClock()
        self._tz = tz
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current(self) -> ActivePunch | None:
        return self._active.get()

    @property
    def state(self) -> PunchState:
        return PunchState.IDLE if self._active.get() is None else PunchState.ACTIVE

    def elapsed(self) -> timedelta | None:
        """Time since punch-in, or None when idle."""
        punch = self._active.get()
        if punch is None:
            return None
        return max(elapsed_between(punch.started_at, self._clock.now()), timedelta(0))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(
        self,
        workplace: Workplace | None,
        role: Role | None = None,
        *,
        defaults: ResolvedDefaults,
        note: str | None = None,
    ) -> ActivePunch:
        """
        Punch in.

        Postconditions:
            The returned punch is persisted and the lifecycle is ACTIVE.

        Raises:
            ActivePunchConflictError: a punch is already active.
        """
        with self._lock:
            existing = self._active.get()
            if existing is not None:
                logger.warning(
                    "punch_start_rejected",
                    extra={"active_punch_id": str(existing.id)},
                )
                raise ActivePunchConflictError(str(existing.id))

            punch = ActivePunch(
                id=uuid4(),
                started_at=self._clock.now(),
                hourly_wage=non_negative(defaults.hourly_wage),
                break_minutes=clamp_break_minutes(defaults.break_minutes),
                unpaid_break=defaults.unpaid_break,
                workplace_id=workplace.id if workplace else None,
                workplace_name=workplace.name if workplace else None,
                role_id=role.id if role else None,
                role_name=role.name if role else None,
                note=_clean_note(note),
            )
            self._active.set(punch)

        with LogContext.bind(punch_id=str(punch.id)):
            logger.info(
                "punch_started",
                extra={
                    "started_at": punch.started_at.isoformat(),
                    "workplace_id": str(punch.workplace_id) if punch.workplace_id else None,
                    "role_id": str(punch.role_id) if punch.role_id else None,
                    "hourly_wage": str(punch.hourly_wage),
                    "break_minutes": punch.break_minutes,
                    "unpaid_break": punch.unpaid_break,
                },
            )
        return punch

    def stop(
        self,
        cash_tips: Amount = 0,
        credit_tips: Amount = 0,
        note: str | None = None,
    ) -> Shift | None:
        """
        Punch out now.

        Returns:
            The appended Shift, or None if no punch was active.

        Raises:
            ShiftValidationError: now is not after started_at.
            PersistenceError: the shift could not be stored.
        """
        with self._lock:
            punch = self._active.get()
            if punch is None:
                logger.debug("punch_stop_ignored", extra={"reason": "idle"})
                return None

            with LogContext.bind(punch_id=str(punch.id)):
                end = self._clock.now()
                if elapsed_between(punch.started_at, end) <= timedelta(0):
                    logger.warning(
                        "punch_stop_rejected",
                        extra={"started_at": punch.started_at.isoformat(), "ended_at": end.isoformat()},
                    )
                    raise ShiftValidationError("end_time", "must be after punch-in time")

                shift = self._finalize(
                    punch,
                    end=end,
                    cash_tips=cash_tips,
                    credit_tips=credit_tips,
                    note=_clean_note(note) if note is not None else punch.note,
                    auto_closed=False,
                )
                logger.info(
                    "punch_stopped",
                    extra={
                        "shift_id": str(shift.id),
                        "worked_minutes": shift.worked_minutes,
                        "total_earned": str(shift.total_earned),
                    },
                )
                return shift

    def check_auto_close(self) -> AutoCloseResult:
        """
        Force-close a punch that has run for 14 hours or more.

        Idempotent: once closed (or when idle, or when under the cap) this
        returns ``AutoCloseResult(closed=False)`` and changes nothing.
        """
        with self._lock:
            punch = self._active.get()
            if punch is None:
                return AutoCloseResult(closed=False)

            if elapsed_between(punch.started_at, self._clock.now()) < MAX_SHIFT_DURATION:
                return AutoCloseResult(closed=False)

            with LogContext.bind(punch_id=str(punch.id)):
                end = (punch.started_at.astimezone(timezone.utc) + MAX_SHIFT_DURATION).astimezone(
                    punch.started_at.tzinfo
                )
                note = f"{punch.note}\n{AUTO_CLOSE_MARKER}" if punch.note else AUTO_CLOSE_MARKER
                shift = self._finalize(
                    punch,
                    end=end,
                    cash_tips=0,
                    credit_tips=0,
                    note=note,
                    auto_closed=True,
                )
                logger.warning(
                    "punch_auto_closed",
                    extra={
                        "shift_id": str(shift.id),
                        "started_at": punch.started_at.isoformat(),
                        "ended_at": end.isoformat(),
                    },
                )
                return AutoCloseResult(closed=True, shift=shift)

    def cancel(self, confirmed: bool = False) -> bool:
        """
        Discard the active punch without recording a shift.

        Returns:
            True if a punch was discarded, False if already idle.

        Raises:
            ConfirmationRequiredError: ``confirmed`` is not True.
        """
        if not confirmed:
            raise ConfirmationRequiredError("cancel_punch")

        with self._lock:
            punch = self._active.get()
            if punch is None:
                return False
            self._active.clear()

        with LogContext.bind(punch_id=str(punch.id)):
            logger.info("punch_cancelled")
        return True

    def update_active(
        self,
        *,
        hourly_wage: Amount | None = None,
        break_minutes: int | None = None,
        unpaid_break: bool | None = None,
        note: str | None = None,
    ) -> ActivePunch:
        """
        Explicitly edit the running punch.

        Only arguments that are not None change; ``note=""`` clears the
        note.  Snapshots and started_at are never touched.

        Raises:
            NoActivePunchError: no punch is active.
        """
        with self._lock:
            punch = self._active.get()
            if punch is None:
                raise NoActivePunchError("update_active")

            changes: dict[str, object] = {}
            if hourly_wage is not None:
                changes["hourly_wage"] = non_negative(hourly_wage)
            if break_minutes is not None:
                changes["break_minutes"] = clamp_break_minutes(break_minutes)
            if unpaid_break is not None:
                changes["unpaid_break"] = unpaid_break
            if note is not None:
                changes["note"] = _clean_note(note)

            updated = replace(punch, **changes)
            self._active.set(updated)

        with LogContext.bind(punch_id=str(updated.id)):
            logger.info("punch_updated", extra={"fields": sorted(changes)})
        return updated

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finalize(
        self,
        punch: ActivePunch,
        *,
        end: datetime,
        cash_tips: Amount,
        credit_tips: Amount,
        note: str | None,
        auto_closed: bool,
    ) -> Shift:
        now = self._clock.now()
        shift = finalize_shift(
            shift_id=uuid4(),
            start=punch.started_at,
            end=end,
            hourly_wage=punch.hourly_wage,
            break_minutes=punch.break_minutes,
            unpaid_break=punch.unpaid_break,
            cash_tips=cash_tips,
            credit_tips=credit_tips,
            workplace_id=punch.workplace_id,
            workplace_name=punch.workplace_name,
            role_id=punch.role_id,
            role_name=punch.role_name,
            note=note,
            auto_closed=auto_closed,
            created_at=now,
            updated_at=now,
            tz=self._tz,
        )

        # Append first: if it fails the punch is still ACTIVE and retryable.
        self._shifts.append(shift)
        try:
            self._active.clear()
        except PersistenceError:
            logger.error("punch_clear_failed", extra={"shift_id": str(shift.id)})
            try:
                self._shifts.remove(shift.id)
            except ShiftKernelError:
                logger.exception(
                    "shift_compensation_failed", extra={"shift_id": str(shift.id)}
                )
            raise
        return shift
