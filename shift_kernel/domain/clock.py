"""
Clock -- injectable source of "now".

Responsibility:
    Punch-in, punch-out, the 14-hour auto-close check and record timestamps
    all read the current time through a Clock, never ``datetime.now()``.
    Tests drive time forward explicitly with DeterministicClock.

Architecture position:
    Kernel > Domain.  SystemClock is the only place the kernel touches the
    real wall clock.

Invariants enforced:
    - Every returned datetime is timezone-aware.

Failure modes:
    - DeterministicClock rejects naive datetimes (ValueError).
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone, tzinfo


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("Clock times must be timezone-aware")
    return value


class Clock(ABC):
    """
    Source of the current instant.

    Contract:
        Services receive a Clock through their constructor and call
        ``now()`` once per operation.

    Guarantees:
        - ``now()`` is aware and expressed in the clock's local zone.
        - ``now_utc()`` is the same instant in UTC.
    """

    @abstractmethod
    def now(self) -> datetime: ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)


class SystemClock(Clock):
    """
    The real wall clock.

    ``tz=None`` means the host's local zone, re-read on every call so a
    DST change on the device is picked up without restarting.
    """

    def __init__(self, tz: tzinfo | None = None):
        self._tz = tz

    def now(self) -> datetime:
        if self._tz is None:
            return datetime.now().astimezone()
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """
    Hand-driven clock for tests.

    Guarantees:
        - ``now()`` does not move until ``advance()``, ``tick()`` or
          ``set_time()`` is called.
        - Advancing adds elapsed time, not wall time, and the result is
          expressed in the zone of the current instant.
    """

    DEFAULT_START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None):
        self._now = _require_aware(start) if start is not None else self.DEFAULT_START

    def now(self) -> datetime:
        return self._now

    def set_time(self, when: datetime) -> None:
        """Jump to ``when``; may move backwards to simulate clock changes."""
        self._now = _require_aware(when)

    def advance(
        self,
        seconds: float | timedelta = 0,
        *,
        minutes: float = 0,
        hours: float = 0,
    ) -> datetime:
        """Move forward and return the new time.

        ``seconds`` also accepts a timedelta.
        """
        step = seconds if isinstance(seconds, timedelta) else timedelta(seconds=seconds)
        step += timedelta(minutes=minutes, hours=hours)
        self._now = (self._now.astimezone(timezone.utc) + step).astimezone(self._now.tzinfo)
        return self._now

    def tick(self) -> datetime:
        """Advance by exactly one second."""
        return self.advance(1)
