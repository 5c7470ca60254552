"""
Money helpers -- Decimal coercion and 2-place rounding.

Responsibility:
    Centralizes how amounts enter the kernel (``to_decimal``) and how they
    are rounded (``round2``) so that every stored wage, tip and total uses
    identical precision.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - No floats in stored amounts.  Floats arriving from a form are converted
      through ``repr`` so 15.1 becomes Decimal("15.1"), not its binary value.
    - ``round2`` is the ONLY sanctioned rounding function for money:
      2 decimal places, half away from zero (ROUND_HALF_UP).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
_QUANT = Decimal("0.01")

Amount = Decimal | int | float | str


def to_decimal(value: Amount | None) -> Decimal:
    """
    Coerce a numeric input to Decimal.

    ``None`` becomes zero.

    Raises:
        ValueError: If a string is not a valid number.
        TypeError: For bool or unsupported types.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary amount")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    raise TypeError(f"Unsupported amount type: {type(value).__name__}")


def round2(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return value.quantize(_QUANT, rounding=DEFAULT_ROUNDING)


def format_money(value: Decimal, symbol: str = "$") -> str:
    """Simple display formatting: ``$12.50``."""
    return f"{symbol}{round2(value):.2f}"
