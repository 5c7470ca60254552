"""
TimeMath -- local-day boundaries, overnight normalization, minute math.

Responsibility:
    Pure functions that turn instants into local calendar dates, push an
    end time past midnight for overnight shifts, count worked minutes and
    deduct unpaid breaks.  Also provides the Monday-start week, month and
    year bounds used to bucket shifts for totals.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A shift's local date is always derived from its start, never its end.
    - ``normalize_end`` compares time-of-day only: an end at or before the
      start's clock time is moved to the next calendar day.
    - ``minutes_between`` and ``deduct_break`` never return negatives.

Timezones:
    Every function that needs "local" takes an optional ``tz``.  ``None``
    means the host's local zone.  Naive datetimes are treated as local wall
    time already.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo

MINUTES_PER_DAY = 24 * 60

_MICROS_PER_MINUTE = 60_000_000
_HALF_MINUTE_MICROS = 30_000_000


def to_local(instant: datetime, tz: tzinfo | None = None) -> datetime:
    """Express ``instant`` as wall time in ``tz`` (host zone if None)."""
    if instant.tzinfo is None:
        return instant if tz is None else instant.replace(tzinfo=tz)
    return instant.astimezone(tz)


def local_date_of(instant: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day (Y-M-D) of ``instant`` in the local zone."""
    return to_local(instant, tz).date()


def minutes_of_day(instant: datetime, tz: tzinfo | None = None) -> int:
    """Minutes since local midnight."""
    local = to_local(instant, tz)
    return local.hour * 60 + local.minute


def normalize_end(
    start: datetime,
    end: datetime,
    tz: tzinfo | None = None,
) -> datetime:
    """
    Return ``end`` adjusted for overnight shifts.

    If the end's local clock time is at or before the start's, the end is
    assumed to fall on the next day and is advanced by one calendar day
    (wall clock, so DST days stay 23/25 hours long).  Otherwise ``end`` is
    returned unchanged.

    Callers are expected to build ``end`` on the same calendar date as
    ``start`` (see ``build_span``); the comparison ignores the date part.
    """
    if minutes_of_day(end, tz) <= minutes_of_day(start, tz):
        return to_local(end, tz) + timedelta(days=1)
    return end


def elapsed(start: datetime, end: datetime) -> timedelta:
    """
    Real time from ``start`` to ``end``.

    Aware instants are compared in UTC: two datetimes sharing one IANA zone
    would otherwise subtract as wall time and gain or lose the DST hour.
    """
    if start.tzinfo is not None and end.tzinfo is not None:
        return end.astimezone(timezone.utc) - start.astimezone(timezone.utc)
    return end - start


def minutes_between(start: datetime, end: datetime) -> int:
    """
    Whole minutes from ``start`` to ``end``, rounded half up, floored at 0.

    Rounding matches a half-up ``round(ms / 60000)``: 29.5s rounds to 0,
    30s rounds to 1 minute.
    """
    micros = elapsed(start, end) // timedelta(microseconds=1)
    minutes = (micros + _HALF_MINUTE_MICROS) // _MICROS_PER_MINUTE
    return max(0, minutes)


def deduct_break(worked_minutes: int, unpaid_break: bool, break_minutes: int) -> int:
    """
    Subtract an unpaid break from worked minutes.

    ``break_minutes`` is trusted to be already clamped to [0, 240] at input
    time (see ``inputs.clamp_break_minutes``).
    """
    if not unpaid_break:
        return worked_minutes
    return max(0, worked_minutes - break_minutes)


def combine_local(day: date, clock_time: time, tz: tzinfo | None = None) -> datetime:
    """
    Build an aware datetime for ``clock_time`` on ``day`` in the local zone.

    Seconds and microseconds are dropped; the UI pickers work in minutes.
    """
    wall = datetime.combine(day, clock_time.replace(second=0, microsecond=0))
    if tz is None:
        return wall.astimezone()
    return wall.replace(tzinfo=tz)


def build_span(
    day: date,
    start_time: time,
    end_time: time,
    tz: tzinfo | None = None,
) -> tuple[datetime, datetime]:
    """Apply start/end clock times to ``day`` and normalize overnight ends."""
    start = combine_local(day, start_time, tz)
    end = combine_local(day, end_time, tz)
    return start, normalize_end(start, end, tz)


# ---------------------------------------------------------------------------
# Calendar buckets
# ---------------------------------------------------------------------------


def week_bounds(day: date) -> tuple[date, date]:
    """Monday..Sunday week containing ``day`` (both inclusive)."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    """First..last day of ``day``'s month."""
    first = day.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return first, next_first - timedelta(days=1)


def year_bounds(day: date) -> tuple[date, date]:
    """Jan 1..Dec 31 of ``day``'s year."""
    return date(day.year, 1, 1), date(day.year, 12, 31)
