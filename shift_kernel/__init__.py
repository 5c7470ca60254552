"""
Shift Kernel - personal shift tracking core

A local, single-user shift ledger with:
- Punch in / punch out lifecycle with a 14-hour auto-close
- Overnight-aware time math and unpaid break deduction
- Decimal pay and tips breakdowns, stored once per shift
- Layered wage/break defaults (Role > Workplace > Profile)
"""

__version__ = "0.1.0"
