"""
Records -- immutable domain records for punches, shifts and the defaults triple.

Responsibility:
    Defines the frozen dataclasses the kernel passes between the lifecycle,
    services and stores: ActivePunch (in-flight punch), Shift (finalized
    work record), and Profile / Workplace / Role (sources of defaults).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Shift.end_time > Shift.start_time strictly.
    - Shift.break_minutes_applied in [0, 240]; wage and tips >= 0.
    - Workplace/role names on ActivePunch and Shift are snapshots taken at
      creation time.  They are never re-joined against the catalog.
    - Shift derived fields (worked_minutes .. total_earned) are stored as
      computed by ``shift_builder``; nothing here recomputes them.

Failure modes:
    - ShiftValidationError from Shift.__post_init__ when an invariant fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from shift_kernel.domain.inputs import MAX_BREAK_MINUTES
from shift_kernel.domain.time_math import elapsed
from shift_kernel.exceptions import ShiftValidationError


@dataclass(frozen=True, slots=True)
class ActivePunch:
    """
    The single in-flight punch.

    ``hourly_wage``, ``break_minutes`` and ``unpaid_break`` are locked at
    punch-in; later edits to Profile/Workplace/Role defaults do not reach
    a running punch.
    """

    id: UUID
    started_at: datetime
    hourly_wage: Decimal
    break_minutes: int
    unpaid_break: bool
    workplace_id: UUID | None = None
    workplace_name: str | None = None
    role_id: UUID | None = None
    role_name: str | None = None
    note: str | None = None


@dataclass(frozen=True, slots=True)
class Shift:
    """
    A finalized work record.

    Contract:
        Created by PunchLifecycle (timer flow) or ShiftService (manual
        entry).  Replaced wholesale on edit; derived fields are always
        recomputed together by ``shift_builder``.

    Guarantees:
        - local_date is the local calendar day of start_time.
        - end_time > start_time.
        - auto_closed is True only for shifts produced by the 14h cap.
    """

    id: UUID
    local_date: date
    start_time: datetime
    end_time: datetime
    hourly_wage: Decimal
    unpaid_break_applied: bool
    break_minutes_applied: int
    cash_tips: Decimal
    credit_tips: Decimal

    # Derived, stored once
    worked_minutes: int
    worked_hours: Decimal
    hourly_pay: Decimal
    total_tips: Decimal
    total_earned: Decimal

    workplace_id: UUID | None = None
    workplace_name: str | None = None
    role_id: UUID | None = None
    role_name: str | None = None
    note: str | None = None
    auto_closed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if elapsed(self.start_time, self.end_time) <= timedelta(0):
            raise ShiftValidationError("end_time", "must be after start_time")
        if not 0 <= self.break_minutes_applied <= MAX_BREAK_MINUTES:
            raise ShiftValidationError(
                "break_minutes_applied", f"must be within 0..{MAX_BREAK_MINUTES}"
            )
        for name in ("hourly_wage", "cash_tips", "credit_tips"):
            if getattr(self, name) < 0:
                raise ShiftValidationError(name, "must not be negative")
        if self.worked_minutes < 0:
            raise ShiftValidationError("worked_minutes", "must not be negative")


@dataclass(frozen=True, slots=True)
class Profile:
    """The user's profile; its defaults are the lowest-priority layer."""

    user_name: str = ""
    default_hourly_wage: Decimal | None = None
    default_break_minutes: int | None = None
    default_unpaid_break: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Workplace:
    """A place of work; its defaults override the profile's."""

    id: UUID
    name: str
    default_hourly_wage: Decimal | None = None
    default_break_minutes: int | None = None
    default_unpaid_break: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Role:
    """A job role (server, bartender...); its defaults override everything."""

    id: UUID
    name: str
    default_hourly_wage: Decimal | None = None
    default_break_minutes: int | None = None
    default_unpaid_break: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
