"""Read-only query side of the kernel."""

from shift_kernel.selectors.shift_selector import ShiftSelector

__all__ = ["ShiftSelector"]
