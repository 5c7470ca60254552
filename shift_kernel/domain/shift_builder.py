"""
Shift builder -- the one place Shift records and their derived fields are made.

Responsibility:
    Turns either a finished punch (start/end instants) or a manual-entry
    draft (date + clock times) into a fully populated Shift.  Both paths run
    the same pipeline:

        minutes_between -> deduct_break -> compute_pay -> Shift

    so derived fields are always consistent with their sources.  Edits go
    through the same pipeline; no code patches one derived field alone.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - ShiftValidationError("workplace_id") -- manual entry without workplace.
    - ShiftValidationError("hourly_wage") -- manual entry with wage <= 0.
    - ShiftValidationError("worked_minutes") -- manual entry with no paid time.
    - ShiftValidationError("end_time") -- end not after start.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from uuid import UUID

from shift_kernel.domain.inputs import clamp_break_minutes, non_negative
from shift_kernel.domain.money import Amount
from shift_kernel.domain.pay import compute_pay
from shift_kernel.domain.records import Role, Shift, Workplace
from shift_kernel.domain.time_math import (
    build_span,
    deduct_break,
    elapsed,
    local_date_of,
    minutes_between,
    to_local,
)
from shift_kernel.exceptions import ShiftValidationError


def finalize_shift(
    *,
    shift_id: UUID,
    start: datetime,
    end: datetime,
    hourly_wage: Amount,
    break_minutes: int,
    unpaid_break: bool,
    cash_tips: Amount = 0,
    credit_tips: Amount = 0,
    workplace_id: UUID | None = None,
    workplace_name: str | None = None,
    role_id: UUID | None = None,
    role_name: str | None = None,
    note: str | None = None,
    auto_closed: bool = False,
    created_at: datetime | None = None,
    updated_at: datetime | None = None,
    tz: tzinfo | None = None,
) -> Shift:
    """
    Build a Shift from concrete instants.

    ``start``/``end`` must already be normalized; no overnight adjustment
    happens here.  Amounts are floored at 0 and break minutes clamped.
    """
    if elapsed(start, end) <= timedelta(0):
        raise ShiftValidationError("end_time", "must be after start_time")

    wage = non_negative(hourly_wage)
    cash = non_negative(cash_tips)
    credit = non_negative(credit_tips)
    breaks = clamp_break_minutes(break_minutes)

    raw_minutes = minutes_between(start, end)
    net_minutes = deduct_break(raw_minutes, unpaid_break, breaks)
    pay = compute_pay(net_minutes, wage, cash, credit)

    return Shift(
        id=shift_id,
        local_date=local_date_of(start, tz),
        start_time=start,
        end_time=end,
        hourly_wage=wage,
        unpaid_break_applied=unpaid_break,
        break_minutes_applied=breaks,
        cash_tips=cash,
        credit_tips=credit,
        worked_minutes=net_minutes,
        worked_hours=pay.worked_hours,
        hourly_pay=pay.hourly_pay,
        total_tips=pay.total_tips,
        total_earned=pay.total_earned,
        workplace_id=workplace_id,
        workplace_name=workplace_name,
        role_id=role_id,
        role_name=role_name,
        note=note,
        auto_closed=auto_closed,
        created_at=created_at,
        updated_at=updated_at,
    )


@dataclass(frozen=True)
class ShiftDraft:
    """
    The add/edit shift form, as values.

    Workplace and role are carried as id + name snapshot so an existing
    shift can be edited even after its workplace was renamed or deleted.
    """

    day: date
    start_time: time
    end_time: time
    hourly_wage: Amount
    break_minutes: int
    unpaid_break: bool
    cash_tips: Amount = 0
    credit_tips: Amount = 0
    workplace_id: UUID | None = None
    workplace_name: str | None = None
    role_id: UUID | None = None
    role_name: str | None = None
    note: str | None = None
    # Exact instants of the shift being edited.  Used as-is while day and
    # clock times still match them, so seconds are not truncated and a
    # same-minute punch is not renormalized into a 24-hour shift.
    recorded_start: datetime | None = None
    recorded_end: datetime | None = None

    def with_workplace(self, workplace: Workplace | None) -> ShiftDraft:
        """Select a workplace, snapshotting its current name."""
        if workplace is None:
            return replace(self, workplace_id=None, workplace_name=None)
        return replace(self, workplace_id=workplace.id, workplace_name=workplace.name)

    def with_role(self, role: Role | None) -> ShiftDraft:
        """Select a role, snapshotting its current name."""
        if role is None:
            return replace(self, role_id=None, role_name=None)
        return replace(self, role_id=role.id, role_name=role.name)

    @classmethod
    def from_shift(cls, shift: Shift, tz: tzinfo | None = None) -> ShiftDraft:
        """Pre-fill an edit form from a stored shift."""
        start = to_local(shift.start_time, tz)
        end = to_local(shift.end_time, tz)
        return cls(
            day=start.date(),
            start_time=start.time(),
            end_time=end.time(),
            hourly_wage=shift.hourly_wage,
            break_minutes=shift.break_minutes_applied,
            unpaid_break=shift.unpaid_break_applied,
            cash_tips=shift.cash_tips,
            credit_tips=shift.credit_tips,
            workplace_id=shift.workplace_id,
            workplace_name=shift.workplace_name,
            role_id=shift.role_id,
            role_name=shift.role_name,
            note=shift.note,
            recorded_start=shift.start_time,
            recorded_end=shift.end_time,
        )

    def span(self, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
        """Start and end instants for this draft."""
        if self.recorded_start is not None and self.recorded_end is not None:
            start = to_local(self.recorded_start, tz)
            end = to_local(self.recorded_end, tz)
            if (self.day, self.start_time, self.end_time) == (
                start.date(),
                start.time(),
                end.time(),
            ):
                return self.recorded_start, self.recorded_end
        return build_span(self.day, self.start_time, self.end_time, tz)


def build_manual_shift(
    draft: ShiftDraft,
    *,
    shift_id: UUID,
    now: datetime,
    created_at: datetime | None = None,
    auto_closed: bool = False,
    previous: ShiftDraft | None = None,
    tz: tzinfo | None = None,
) -> Shift:
    """
    Validate a manual-entry draft and build the Shift.

    ``created_at`` is kept when rebuilding an edited shift; ``now`` becomes
    ``updated_at`` (and ``created_at`` for new shifts).

    ``previous`` is the stored shift's own draft when editing.  The
    workplace and wage checks then apply only to values the edit changes;
    the worked-minutes check always applies.
    """
    wage = non_negative(draft.hourly_wage)
    if previous is None or draft.workplace_id != previous.workplace_id:
        if draft.workplace_id is None:
            raise ShiftValidationError("workplace_id", "please select a workplace")
    if previous is None or wage != non_negative(previous.hourly_wage):
        if wage <= Decimal(0):
            raise ShiftValidationError("hourly_wage", "must be greater than 0")

    start, end = draft.span(tz)
    breaks = clamp_break_minutes(draft.break_minutes)
    net_minutes = deduct_break(minutes_between(start, end), draft.unpaid_break, breaks)
    if net_minutes <= 0:
        raise ShiftValidationError("worked_minutes", "end time must be after start time")

    note = draft.note.strip() if draft.note else None
    return finalize_shift(
        shift_id=shift_id,
        start=start,
        end=end,
        hourly_wage=wage,
        break_minutes=breaks,
        unpaid_break=draft.unpaid_break,
        cash_tips=draft.cash_tips,
        credit_tips=draft.credit_tips,
        workplace_id=draft.workplace_id,
        workplace_name=draft.workplace_name,
        role_id=draft.role_id,
        role_name=draft.role_name,
        note=note or None,
        auto_closed=auto_closed,
        created_at=created_at or now,
        updated_at=now,
        tz=tz,
    )
