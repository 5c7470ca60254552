"""
DefaultsResolver -- Role > Workplace > Profile layering.

Responsibility:
    Merges wage / break / unpaid-break defaults from the three layers.
    Each field is resolved independently: the first non-None value walking
    Role -> Workplace -> Profile wins, falling back to wage 0, 30 break
    minutes and unpaid break enabled.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  A pure function of
    its three inputs so it can be re-run whenever a form selection changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol

from shift_kernel.domain.inputs import DEFAULT_BREAK_MINUTES, clamp_break_minutes
from shift_kernel.domain.money import ZERO, to_decimal

FALLBACK_HOURLY_WAGE = ZERO
FALLBACK_BREAK_MINUTES = DEFAULT_BREAK_MINUTES
FALLBACK_UNPAID_BREAK = True


class DefaultsSource(Protocol):
    """Anything carrying the three optional default fields."""

    default_hourly_wage: Decimal | None
    default_break_minutes: int | None
    default_unpaid_break: bool | None


@dataclass(frozen=True, slots=True)
class ResolvedDefaults:
    """Concrete values to pre-fill a punch-in or add-shift form."""

    hourly_wage: Decimal
    break_minutes: int
    unpaid_break: bool


def _first(field: str, layers: tuple[DefaultsSource | None, ...], fallback: Any) -> Any:
    for layer in layers:
        if layer is None:
            continue
        value = getattr(layer, field)
        if value is not None:
            return value
    return fallback


def resolve_defaults(
    profile: DefaultsSource | None,
    workplace: DefaultsSource | None = None,
    role: DefaultsSource | None = None,
) -> ResolvedDefaults:
    """
    Resolve form defaults, field by field.

    Example:
        role wage 20, workplace wage 15, profile wage 10 -> 20
        role wage None, workplace wage 15, profile wage 10 -> 15
        all None -> 0
    """
    layers = (role, workplace, profile)
    return ResolvedDefaults(
        hourly_wage=to_decimal(
            _first("default_hourly_wage", layers, FALLBACK_HOURLY_WAGE)
        ),
        break_minutes=clamp_break_minutes(
            _first("default_break_minutes", layers, FALLBACK_BREAK_MINUTES)
        ),
        unpaid_break=bool(
            _first("default_unpaid_break", layers, FALLBACK_UNPAID_BREAK)
        ),
    )
