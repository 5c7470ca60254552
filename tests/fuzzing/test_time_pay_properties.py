"""
Property-based tests for shift time and pay math.

Properties checked:
- build_span always yields an end after the start and at most one day later
- minutes_between never goes negative
- deduct_break never adds time and never drops below zero
- compute_pay totals add up and every money field has two decimal places
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from shift_kernel.domain.pay import compute_pay
from shift_kernel.domain.time_math import (
    build_span,
    deduct_break,
    minutes_between,
)

TZ = timezone(timedelta(hours=-5))
CENT = Decimal("0.01")

clock_times = st.times().map(lambda t: t.replace(second=0, microsecond=0))
days = st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31))
wages = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("500"), places=2)
tips = st.decimals(min_value=Decimal("0"), max_value=Decimal("5000"), places=2)


class TestSpanProperties:
    @given(day=days, start=clock_times, end=clock_times)
    @settings(max_examples=200)
    def test_end_after_start_within_one_day(self, day, start, end):
        begin, finish = build_span(day, start, end, TZ)
        assert begin < finish
        assert finish - begin <= timedelta(days=1)

    @given(day=days, start=clock_times, end=clock_times)
    def test_worked_minutes_in_range(self, day, start, end):
        begin, finish = build_span(day, start, end, TZ)
        assert 1 <= minutes_between(begin, finish) <= 24 * 60


class TestMinutesProperties:
    @given(
        seconds=st.integers(min_value=-86_400 * 3, max_value=86_400 * 3),
    )
    def test_never_negative(self, seconds):
        start = datetime(2024, 1, 15, 9, tzinfo=TZ)
        assert minutes_between(start, start + timedelta(seconds=seconds)) >= 0

    @given(
        worked=st.integers(min_value=0, max_value=24 * 60),
        unpaid=st.booleans(),
        break_minutes=st.integers(min_value=0, max_value=240),
    )
    def test_deduct_break_bounds(self, worked, unpaid, break_minutes):
        result = deduct_break(worked, unpaid, break_minutes)
        assert 0 <= result <= worked
        if not unpaid:
            assert result == worked


class TestPayProperties:
    @given(
        worked=st.integers(min_value=0, max_value=14 * 60),
        wage=wages,
        cash=tips,
        credit=tips,
    )
    def test_totals_add_up(self, worked, wage, cash, credit):
        pay = compute_pay(worked, wage, cash, credit)
        assert pay.total_tips == cash + credit
        assert pay.total_earned == pay.hourly_pay + pay.total_tips
        for amount in (pay.worked_hours, pay.hourly_pay, pay.total_tips, pay.total_earned):
            assert amount == amount.quantize(CENT)

    @given(worked=st.integers(min_value=0, max_value=14 * 60), wage=wages)
    def test_more_minutes_never_pay_less(self, worked, wage):
        assert compute_pay(worked + 1, wage).hourly_pay >= compute_pay(worked, wage).hourly_pay
