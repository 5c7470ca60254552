"""
Period totals over stored shifts.

Sums the stored derived fields (never recomputes them from sources) for a
set of shifts, and filters shifts into local-date ranges.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shift_kernel.domain.money import ZERO, round2
from shift_kernel.domain.records import Shift


@dataclass(frozen=True, slots=True)
class ShiftTotals:
    shift_count: int
    worked_minutes: int
    worked_hours: Decimal
    cash_tips: Decimal
    credit_tips: Decimal
    total_tips: Decimal
    hourly_pay: Decimal
    total_earned: Decimal


def compute_totals(shifts: Iterable[Shift]) -> ShiftTotals:
    count = 0
    minutes = 0
    cash = credit = wage = earned = ZERO
    for s in shifts:
        count += 1
        minutes += s.worked_minutes
        cash += s.cash_tips
        credit += s.credit_tips
        wage += s.hourly_pay
        earned += s.total_earned
    return ShiftTotals(
        shift_count=count,
        worked_minutes=minutes,
        worked_hours=round2(Decimal(minutes) / Decimal(60)),
        cash_tips=round2(cash),
        credit_tips=round2(credit),
        total_tips=round2(cash + credit),
        hourly_pay=round2(wage),
        total_earned=round2(earned),
    )


def shifts_between(shifts: Iterable[Shift], first: date, last: date) -> list[Shift]:
    """Shifts whose local date falls in [first, last]."""
    return [s for s in shifts if first <= s.local_date <= last]
