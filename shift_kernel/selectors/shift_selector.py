"""
Module: shift_kernel.selectors.shift_selector
Responsibility: Read-only queries over stored shifts for the history,
    day-details, week-details and monthly-summary screens.
Architecture position: Kernel > Selectors.  Reads through a ShiftStore;
    never writes.

Invariants enforced:
    - Totals sum the stored derived fields; nothing is recomputed from
      wage and minutes on read.
    - Periods bucket by Shift.local_date.  Weeks run Monday..Sunday.
"""

from __future__ import annotations

from datetime import date, timedelta

from shift_kernel.domain.records import Shift
from shift_kernel.domain.summary import ShiftTotals, compute_totals, shifts_between
from shift_kernel.domain.time_math import month_bounds, week_bounds, year_bounds
from shift_kernel.stores.base import ShiftStore


class ShiftSelector:
    """
    Selector for shift history and period totals.

    Contract:
        Returns immutable Shift records and ShiftTotals.  Each call reads a
        fresh snapshot from the store.
    """

    def __init__(self, shift_store: ShiftStore):
        self._shifts = shift_store

    def list_all(self) -> list[Shift]:
        """All shifts, newest start first."""
        return self._shifts.list()

    def get(self, shift_id) -> Shift | None:
        return self._shifts.get(shift_id)

    def list_for_day(self, day: date) -> list[Shift]:
        return self.list_between(day, day)

    def list_between(self, first: date, last: date) -> list[Shift]:
        """Shifts with local_date in [first, last], newest first."""
        return shifts_between(self._shifts.list(), first, last)

    def totals_between(self, first: date, last: date) -> ShiftTotals:
        return compute_totals(self.list_between(first, last))

    def totals_for_day(self, day: date) -> ShiftTotals:
        return self.totals_between(day, day)

    def totals_for_week(self, day: date) -> ShiftTotals:
        """Totals for the Monday..Sunday week containing ``day``."""
        return self.totals_between(*week_bounds(day))

    def totals_for_month(self, day: date) -> ShiftTotals:
        return self.totals_between(*month_bounds(day))

    def totals_for_year(self, day: date) -> ShiftTotals:
        return self.totals_between(*year_bounds(day))

    def daily_totals(self, first: date, last: date) -> dict[date, ShiftTotals]:
        """
        Per-day totals for every date in [first, last], empty days included.

        Used by the week-details screen to draw one row per weekday.
        """
        shifts = self.list_between(first, last)
        result: dict[date, ShiftTotals] = {}
        day = first
        while day <= last:
            result[day] = compute_totals(s for s in shifts if s.local_date == day)
            day += timedelta(days=1)
        return result
