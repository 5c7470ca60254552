"""
Pure domain layer.

This module contains immutable records and domain logic with NO
dependencies on:
- ORM (SQLAlchemy)
- Storage
- I/O

Time enters only through an injected Clock; everything else is a pure
function of its inputs.
"""

from shift_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from shift_kernel.domain.defaults import ResolvedDefaults, resolve_defaults
from shift_kernel.domain.forms import ShiftForm
from shift_kernel.domain.inputs import (
    DEFAULT_BREAK_MINUTES,
    MAX_BREAK_MINUTES,
    clamp_break_minutes,
    parse_break_minutes,
    parse_money,
)
from shift_kernel.domain.money import format_money, round2, to_decimal
from shift_kernel.domain.pay import PayBreakdown, compute_pay
from shift_kernel.domain.records import ActivePunch, Profile, Role, Shift, Workplace
from shift_kernel.domain.shift_builder import (
    ShiftDraft,
    build_manual_shift,
    finalize_shift,
)
from shift_kernel.domain.summary import ShiftTotals, compute_totals, shifts_between
from shift_kernel.domain.time_math import (
    build_span,
    deduct_break,
    local_date_of,
    minutes_between,
    normalize_end,
)

__all__ = [
    # Time
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "build_span",
    "deduct_break",
    "local_date_of",
    "minutes_between",
    "normalize_end",
    # Money
    "PayBreakdown",
    "compute_pay",
    "format_money",
    "round2",
    "to_decimal",
    # Inputs
    "DEFAULT_BREAK_MINUTES",
    "MAX_BREAK_MINUTES",
    "clamp_break_minutes",
    "parse_break_minutes",
    "parse_money",
    # Defaults
    "ResolvedDefaults",
    "ShiftForm",
    "resolve_defaults",
    # Records
    "ActivePunch",
    "Profile",
    "Role",
    "Shift",
    "Workplace",
    # Builders / totals
    "ShiftDraft",
    "ShiftTotals",
    "build_manual_shift",
    "compute_totals",
    "finalize_shift",
    "shifts_between",
]
