"""
Input sanitization for form values.

Form fields arrive as free text ("$12.50", "45 min").  These helpers turn
them into the clean numbers the domain trusts: amounts are non-negative
Decimals, break minutes are integers clamped to [0, MAX_BREAK_MINUTES].
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from shift_kernel.domain.money import ZERO, Amount, to_decimal

MAX_BREAK_MINUTES = 240
DEFAULT_BREAK_MINUTES = 30

_NOT_MONEY = re.compile(r"[^0-9.]")
_NOT_DIGIT = re.compile(r"[^0-9]")


def parse_money(text: str | None) -> Decimal:
    """Parse a typed amount; anything unparseable becomes 0."""
    cleaned = _NOT_MONEY.sub("", text or "")
    if not cleaned:
        return ZERO
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return ZERO


def parse_break_minutes(text: str | None) -> int:
    """Parse typed break minutes and clamp them."""
    cleaned = _NOT_DIGIT.sub("", text or "")
    return clamp_break_minutes(int(cleaned) if cleaned else 0)


def clamp_break_minutes(minutes: int | None) -> int:
    """Clamp break minutes into [0, 240].  None means the default (30)."""
    if minutes is None:
        return DEFAULT_BREAK_MINUTES
    return min(MAX_BREAK_MINUTES, max(0, int(minutes)))


def non_negative(value: Amount | None) -> Decimal:
    """Coerce an amount and floor negatives to 0."""
    amount = to_decimal(value)
    return amount if amount > 0 else ZERO
