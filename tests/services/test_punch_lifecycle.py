"""
Tests for the punch-in / punch-out state machine.

Verifies:
- start/stop round trip with locked wage and tips
- 14-hour auto-close ends at started_at + 14h exactly and is idempotent
- At most one active punch after any sequence of operations
- Conflict, confirmation and idle no-op behavior
- Storage failures never leave a half-finalized punch
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from shift_kernel.domain.defaults import ResolvedDefaults
from shift_kernel.exceptions import (
    ActivePunchConflictError,
    ConfirmationRequiredError,
    NoActivePunchError,
    PersistenceError,
    ShiftValidationError,
)
from shift_kernel.services.punch_lifecycle import (
    AUTO_CLOSE_MARKER,
    MAX_SHIFT_DURATION,
    AutoCloseResult,
    PunchLifecycle,
    PunchState,
)
from shift_kernel.stores.json_store import (
    ACTIVE_PUNCH_KEY,
    SHIFTS_KEY,
    JsonActivePunchStore,
    JsonShiftStore,
)
from shift_kernel.stores.kv import MemoryKeyValueBackend


class FlakyBackend(MemoryKeyValueBackend):
    """Memory backend whose writes to chosen keys can be made to fail."""

    def __init__(self):
        super().__init__()
        self.failing: set[str] = set()

    def set(self, key, value):
        if key in self.failing:
            raise PersistenceError("write", key, "disk full")
        super().set(key, value)

    def remove(self, key):
        if key in self.failing:
            raise PersistenceError("delete", key, "disk full")
        super().remove(key)


class TestStart:
    def test_start_persists_punch(self, lifecycle, active_store, workplace, clock, wage_defaults):
        punch = lifecycle.start(workplace, defaults=wage_defaults, note="  opening  ")
        assert active_store.get() == punch
        assert punch.started_at == clock.now()
        assert punch.workplace_name == "Blue Door Diner"
        assert punch.note == "opening"
        assert lifecycle.state is PunchState.ACTIVE

    def test_second_start_is_rejected(self, lifecycle, workplace, wage_defaults):
        first = lifecycle.start(workplace, defaults=wage_defaults)
        with pytest.raises(ActivePunchConflictError) as exc:
            lifecycle.start(workplace, defaults=wage_defaults)
        assert exc.value.active_punch_id == str(first.id)
        assert lifecycle.current() == first

    def test_break_minutes_clamped_and_wage_floored(self, lifecycle, workplace):
        punch = lifecycle.start(
            workplace,
            defaults=ResolvedDefaults(hourly_wage=Decimal("-3"), break_minutes=999, unpaid_break=True),
        )
        assert punch.break_minutes == 240
        assert punch.hourly_wage == Decimal("0")

    def test_start_without_workplace(self, lifecycle, wage_defaults):
        punch = lifecycle.start(None, defaults=wage_defaults)
        assert punch.workplace_id is None
        assert punch.workplace_name is None

    def test_role_snapshot(self, lifecycle, workplace, role, wage_defaults):
        punch = lifecycle.start(workplace, role, defaults=wage_defaults)
        assert (punch.role_id, punch.role_name) == (role.id, "Server")

    def test_start_logs(self, lifecycle, workplace, wage_defaults, captured_logs):
        punch = lifecycle.start(workplace, defaults=wage_defaults)
        started = [r for r in captured_logs() if r["message"] == "punch_started"]
        assert len(started) == 1
        assert started[0]["punch_id"] == str(punch.id)


class TestStop:
    def test_round_trip(self, lifecycle, shift_store, active_store, workplace, clock, wage_defaults):
        punch = lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(3 * 3600 + 20)

        shift = lifecycle.stop(cash_tips=5, credit_tips=5)

        assert shift.worked_minutes == 180
        assert shift.hourly_pay == Decimal("30.00")
        assert shift.total_tips == Decimal("10.00")
        assert shift.total_earned == Decimal("40.00")
        assert shift.start_time == punch.started_at
        assert shift.end_time == clock.now()
        assert shift.auto_closed is False
        assert shift_store.list() == [shift]
        assert active_store.get() is None
        assert lifecycle.state is PunchState.IDLE

    def test_worked_minutes_track_elapsed_time(self, lifecycle, workplace, clock, wage_defaults):
        lifecycle.start(workplace, defaults=wage_defaults)
        elapsed_seconds = 7 * 3600 + 41 * 60 + 17
        clock.advance(elapsed_seconds)
        shift = lifecycle.stop()
        assert abs(shift.worked_minutes - elapsed_seconds / 60) <= 1

    def test_unpaid_break_applies(self, lifecycle, workplace, clock):
        lifecycle.start(
            workplace,
            defaults=ResolvedDefaults(hourly_wage=Decimal("12"), break_minutes=30, unpaid_break=True),
        )
        clock.advance(8 * 3600)
        shift = lifecycle.stop()
        assert shift.worked_minutes == 450
        assert shift.break_minutes_applied == 30
        assert shift.hourly_pay == Decimal("90.00")

    def test_locked_wage_ignores_later_catalog_edits(
        self, lifecycle, catalog, workplace, clock
    ):
        lifecycle.start(workplace, defaults=catalog.resolve_for(workplace.id))
        catalog.update_workplace(workplace.id, name="Renamed", default_hourly_wage="99")
        clock.advance(3600)
        shift = lifecycle.stop()
        assert shift.hourly_wage == Decimal("15.00")
        assert shift.workplace_name == "Blue Door Diner"

    def test_note_falls_back_to_punch_note(self, lifecycle, workplace, clock, wage_defaults):
        lifecycle.start(workplace, defaults=wage_defaults, note="training")
        clock.advance(600)
        assert lifecycle.stop().note == "training"

    def test_note_argument_wins(self, lifecycle, workplace, clock, wage_defaults):
        lifecycle.start(workplace, defaults=wage_defaults, note="training")
        clock.advance(600)
        assert lifecycle.stop(note="closed early").note == "closed early"

    def test_stop_while_idle_is_noop(self, lifecycle, shift_store):
        assert lifecycle.stop() is None
        assert shift_store.list() == []

    def test_zero_duration_keeps_punch_active(self, lifecycle, workplace, wage_defaults):
        punch = lifecycle.start(workplace, defaults=wage_defaults)
        with pytest.raises(ShiftValidationError):
            lifecycle.stop()
        assert lifecycle.current() == punch

    def test_overnight_punch_dates_to_start(self, lifecycle, workplace, clock, wage_defaults, local_tz):
        clock.set_time(clock.now().replace(hour=22))
        lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(8 * 3600)
        shift = lifecycle.stop()
        assert shift.local_date == shift.start_time.astimezone(local_tz).date()
        assert shift.end_time.astimezone(local_tz).date() > shift.local_date


class TestAutoClose:
    def test_closes_at_exactly_fourteen_hours(self, lifecycle, active_store, workplace, clock, wage_defaults):
        punch = lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(15 * 3600)

        result = lifecycle.check_auto_close()

        assert result.closed is True
        assert result.shift.end_time == punch.started_at + timedelta(hours=14)
        assert result.shift.auto_closed is True
        assert result.shift.worked_minutes == 14 * 60
        assert result.shift.total_tips == Decimal("0.00")
        assert result.shift.hourly_pay == Decimal("140.00")
        assert active_store.get() is None

    def test_second_call_is_noop(self, lifecycle, shift_store, workplace, clock, wage_defaults):
        lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(15 * 3600)
        lifecycle.check_auto_close()

        assert lifecycle.check_auto_close() == AutoCloseResult(closed=False)
        assert lifecycle.state is PunchState.IDLE
        assert len(shift_store.list()) == 1

    def test_under_cap_is_noop(self, lifecycle, workplace, clock, wage_defaults):
        punch = lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(int(MAX_SHIFT_DURATION.total_seconds()) - 1)
        assert lifecycle.check_auto_close().closed is False
        assert lifecycle.current() == punch

    def test_at_cap_closes(self, lifecycle, workplace, clock, wage_defaults):
        lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(int(MAX_SHIFT_DURATION.total_seconds()))
        assert lifecycle.check_auto_close().closed is True

    def test_marker_appended_to_note(self, lifecycle, workplace, clock, wage_defaults):
        lifecycle.start(workplace, defaults=wage_defaults, note="double")
        clock.advance(20 * 3600)
        assert lifecycle.check_auto_close().shift.note == f"double\n{AUTO_CLOSE_MARKER}"

    def test_marker_alone_without_note(self, lifecycle, workplace, clock, wage_defaults):
        lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(20 * 3600)
        assert lifecycle.check_auto_close().shift.note == AUTO_CLOSE_MARKER

    def test_idle_is_noop(self, lifecycle):
        assert lifecycle.check_auto_close() == AutoCloseResult(closed=False)

    def test_logs_warning(self, lifecycle, workplace, clock, wage_defaults, captured_logs):
        lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(15 * 3600)
        lifecycle.check_auto_close()
        records = [r for r in captured_logs() if r["message"] == "punch_auto_closed"]
        assert records and records[0]["level"] == "WARNING"


class TestCancel:
    def test_requires_confirmation(self, lifecycle, workplace, wage_defaults):
        lifecycle.start(workplace, defaults=wage_defaults)
        with pytest.raises(ConfirmationRequiredError) as exc:
            lifecycle.cancel()
        assert exc.value.action == "cancel_punch"
        assert lifecycle.state is PunchState.ACTIVE

    def test_discards_without_shift(self, lifecycle, shift_store, workplace, wage_defaults):
        lifecycle.start(workplace, defaults=wage_defaults)
        assert lifecycle.cancel(confirmed=True) is True
        assert lifecycle.state is PunchState.IDLE
        assert shift_store.list() == []

    def test_idle_returns_false(self, lifecycle):
        assert lifecycle.cancel(confirmed=True) is False


class TestUpdateActive:
    def test_edits_locked_fields(self, lifecycle, active_store, workplace, wage_defaults):
        punch = lifecycle.start(workplace, defaults=wage_defaults, note="x")
        updated = lifecycle.update_active(hourly_wage="11.50", break_minutes=500, note="")
        assert updated.hourly_wage == Decimal("11.50")
        assert updated.break_minutes == 240
        assert updated.note is None
        assert updated.started_at == punch.started_at
        assert updated.unpaid_break is punch.unpaid_break
        assert active_store.get() == updated

    def test_idle_raises(self, lifecycle):
        with pytest.raises(NoActivePunchError):
            lifecycle.update_active(hourly_wage=10)


class TestSingleActivePunch:
    def test_any_sequence_leaves_zero_or_one(self, lifecycle, backend, workplace, clock, wage_defaults):
        steps = [
            lambda: lifecycle.start(workplace, defaults=wage_defaults),
            lambda: lifecycle.start(workplace, defaults=wage_defaults),
            lambda: clock.advance(3600),
            lifecycle.stop,
            lifecycle.stop,
            lambda: lifecycle.start(workplace, defaults=wage_defaults),
            lambda: clock.advance(15 * 3600),
            lifecycle.check_auto_close,
            lambda: lifecycle.start(workplace, defaults=wage_defaults),
            lambda: lifecycle.cancel(confirmed=True),
            lifecycle.check_auto_close,
        ]
        for step in steps:
            try:
                step()
            except ActivePunchConflictError:
                pass
            stored = backend.get(ACTIVE_PUNCH_KEY)
            assert (stored is None) == (lifecycle.state is PunchState.IDLE)
            assert lifecycle.current() is None or lifecycle.state is PunchState.ACTIVE


class TestPersistenceFailures:
    @pytest.fixture
    def flaky(self):
        return FlakyBackend()

    @pytest.fixture
    def flaky_lifecycle(self, flaky, clock, local_tz):
        return PunchLifecycle(
            JsonActivePunchStore(flaky), JsonShiftStore(flaky), clock=clock, tz=local_tz
        )

    def test_append_failure_keeps_punch_active(self, flaky, flaky_lifecycle, workplace, clock, wage_defaults):
        punch = flaky_lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(3600)
        flaky.failing.add(SHIFTS_KEY)

        with pytest.raises(PersistenceError):
            flaky_lifecycle.stop()

        assert flaky_lifecycle.current() == punch
        flaky.failing.clear()
        assert flaky_lifecycle.stop() is not None

    def test_clear_failure_removes_appended_shift(self, flaky, flaky_lifecycle, workplace, clock, wage_defaults):
        punch = flaky_lifecycle.start(workplace, defaults=wage_defaults)
        clock.advance(3600)
        flaky.failing.add(ACTIVE_PUNCH_KEY)

        with pytest.raises(PersistenceError):
            flaky_lifecycle.stop()

        assert flaky_lifecycle.current() == punch
        assert JsonShiftStore(flaky).list() == []

    def test_start_failure_stays_idle(self, flaky, flaky_lifecycle, workplace, wage_defaults):
        flaky.failing.add(ACTIVE_PUNCH_KEY)
        with pytest.raises(PersistenceError):
            flaky_lifecycle.start(workplace, defaults=wage_defaults)
        assert flaky_lifecycle.state is PunchState.IDLE
