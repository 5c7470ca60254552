"""
PayCalculator -- worked minutes + wage + tips -> money breakdown.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - ``hourly_pay`` is computed from the UNROUNDED hours (minutes / 60),
      never from the 2-place ``worked_hours`` display value.  Only the final
      product is rounded.
    - Every output is rounded with ``round2`` (half away from zero).

Failure modes:
    None.  Negative inputs are floored to 0 by input sanitization before
    they get here (see ``inputs``).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from shift_kernel.domain.money import Amount, round2, to_decimal

_MINUTES_PER_HOUR = Decimal(60)


@dataclass(frozen=True, slots=True)
class PayBreakdown:
    """Derived money fields stored on every Shift."""

    worked_hours: Decimal
    hourly_pay: Decimal
    total_tips: Decimal
    total_earned: Decimal


def compute_pay(
    worked_minutes: int,
    hourly_wage: Amount,
    cash_tips: Amount = 0,
    credit_tips: Amount = 0,
) -> PayBreakdown:
    """
    Compute the pay breakdown for a shift.

    Example:
        compute_pay(480, Decimal("15"), 20, 10)
        -> worked_hours=8.00, hourly_pay=120.00, total_tips=30.00,
           total_earned=150.00
    """
    hours = Decimal(worked_minutes) / _MINUTES_PER_HOUR
    hourly_pay = round2(hours * to_decimal(hourly_wage))
    total_tips = round2(to_decimal(cash_tips) + to_decimal(credit_tips))
    return PayBreakdown(
        worked_hours=round2(hours),
        hourly_pay=hourly_pay,
        total_tips=total_tips,
        total_earned=round2(hourly_pay + total_tips),
    )
