"""
Form state for the punch-in and add-shift screens.

``ShiftForm.select`` re-runs the defaults resolver whenever the workplace or
role selection changes and OVERWRITES wage, break minutes and unpaid break,
including values the user typed by hand since the last selection.  Switching
context resets the form to that context's defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from shift_kernel.domain.defaults import ResolvedDefaults, resolve_defaults
from shift_kernel.domain.inputs import parse_break_minutes, parse_money
from shift_kernel.domain.records import Profile, Role, Workplace


@dataclass(frozen=True)
class ShiftForm:
    workplace: Workplace | None = None
    role: Role | None = None
    hourly_wage: Decimal = Decimal("0")
    break_minutes: int = 30
    unpaid_break: bool = True
    note: str = ""

    def select(
        self,
        profile: Profile | None,
        workplace: Workplace | None,
        role: Role | None = None,
    ) -> ShiftForm:
        """Change the selection and reset wage/break fields to its defaults."""
        resolved = resolve_defaults(profile, workplace, role)
        return replace(
            self,
            workplace=workplace,
            role=role,
            hourly_wage=resolved.hourly_wage,
            break_minutes=resolved.break_minutes,
            unpaid_break=resolved.unpaid_break,
        )

    def type_wage(self, text: str) -> ShiftForm:
        return replace(self, hourly_wage=parse_money(text))

    def type_break_minutes(self, text: str) -> ShiftForm:
        return replace(self, break_minutes=parse_break_minutes(text))

    def toggle_unpaid_break(self, enabled: bool) -> ShiftForm:
        return replace(self, unpaid_break=enabled)

    @property
    def defaults(self) -> ResolvedDefaults:
        """The values as they stand now, ready to lock into a punch."""
        return ResolvedDefaults(
            hourly_wage=self.hourly_wage,
            break_minutes=self.break_minutes,
            unpaid_break=self.unpaid_break,
        )
