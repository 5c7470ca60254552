"""
Typed Exception Hierarchy for the Shift Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The UI layer needs to react differently to a bad form value, a record that
was deleted on another screen, and a storage write that failed.  Parsing
message strings for that is fragile, so every error has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, stable across wording changes)
  3. Structured DATA (not just a message string)

Example - RIGHT way:
    try:
        lifecycle.start(workplace, defaults=resolved)
    except ActivePunchConflictError as e:
        show_banner(f"Already punched in ({e.active_punch_id})")
    except PersistenceError as e:
        offer_retry(code=e.code, operation=e.operation)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ShiftKernelError (base)
    |
    +-- ValidationError
    |   +-- ShiftValidationError
    |   +-- ConfirmationRequiredError
    |
    +-- NotFoundError
    |   +-- ShiftNotFoundError
    |   +-- WorkplaceNotFoundError
    |   +-- RoleNotFoundError
    |
    +-- PunchError
    |   +-- ActivePunchConflictError
    |   +-- NoActivePunchError
    |
    +-- PersistenceError
        +-- DuplicateShiftError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                     | When Raised
-------------|--------------------------|--------------------------------------
Validation   | SHIFT_VALIDATION_ERROR   | Missing workplace, wage <= 0,
             |                          | worked minutes <= 0, end <= start
             | CONFIRMATION_REQUIRED    | Destructive action without confirm
-------------|--------------------------|--------------------------------------
Not found    | SHIFT_NOT_FOUND          | Editing/deleting a vanished shift
             | WORKPLACE_NOT_FOUND      | Workplace id no longer exists
             | ROLE_NOT_FOUND           | Role id no longer exists
-------------|--------------------------|--------------------------------------
Punch        | ACTIVE_PUNCH_CONFLICT    | start() while a punch is active
             | NO_ACTIVE_PUNCH          | Editing the active punch while idle
-------------|--------------------------|--------------------------------------
Persistence  | PERSISTENCE_ERROR        | Underlying store read/write failed
             | DUPLICATE_SHIFT          | append() with an id already stored

===============================================================================
HANDLING PATTERNS
===============================================================================

1. ValidationError is recovered by the caller and shown as a message.
2. NotFoundError aborts the operation; nothing was changed.
3. PersistenceError is never swallowed on writes.  Losing a punch-out is
   data loss, not a UI hiccup, so the caller must retry or alert.
"""


class ShiftKernelError(Exception):
    """
    Base exception for all shift kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SHIFT_KERNEL_ERROR"


# Validation exceptions


class ValidationError(ShiftKernelError):
    """Base exception for rejected user input."""

    code: str = "VALIDATION_ERROR"


class ShiftValidationError(ValidationError):
    """A shift (or punch) field failed validation."""

    code: str = "SHIFT_VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class ConfirmationRequiredError(ValidationError):
    """A destructive action was requested without explicit confirmation."""

    code: str = "CONFIRMATION_REQUIRED"

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Action requires confirmation: {action}")


# Not-found exceptions


class NotFoundError(ShiftKernelError):
    """Base exception for records that no longer exist."""

    code: str = "NOT_FOUND"


class ShiftNotFoundError(NotFoundError):
    """Shift with given ID was not found."""

    code: str = "SHIFT_NOT_FOUND"

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Shift not found: {shift_id}")


class WorkplaceNotFoundError(NotFoundError):
    """Workplace with given ID was not found."""

    code: str = "WORKPLACE_NOT_FOUND"

    def __init__(self, workplace_id: str):
        self.workplace_id = workplace_id
        super().__init__(f"Workplace not found: {workplace_id}")


class RoleNotFoundError(NotFoundError):
    """Role with given ID was not found."""

    code: str = "ROLE_NOT_FOUND"

    def __init__(self, role_id: str):
        self.role_id = role_id
        super().__init__(f"Role not found: {role_id}")


# Punch lifecycle exceptions


class PunchError(ShiftKernelError):
    """Base exception for punch lifecycle errors."""

    code: str = "PUNCH_ERROR"


class ActivePunchConflictError(PunchError):
    """
    start() was called while another punch is active.

    The kernel never silently replaces an in-flight punch; the caller must
    stop or cancel it first.
    """

    code: str = "ACTIVE_PUNCH_CONFLICT"

    def __init__(self, active_punch_id: str):
        self.active_punch_id = active_punch_id
        super().__init__(f"A punch is already active: {active_punch_id}")


class NoActivePunchError(PunchError):
    """An operation that needs an active punch found the slot empty."""

    code: str = "NO_ACTIVE_PUNCH"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"No active punch for {operation}")


# Persistence exceptions


class PersistenceError(ShiftKernelError):
    """
    The underlying store failed to read or write.

    Wraps the backend exception (available as ``__cause__``) so callers
    only need to know about one storage error type.
    """

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, key: str | None = None, detail: str = ""):
        self.operation = operation
        self.key = key
        self.detail = detail
        msg = f"Persistence failure during {operation}"
        if key is not None:
            msg += f" (key={key})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class DuplicateShiftError(PersistenceError):
    """append() was given a shift whose id is already stored."""

    code: str = "DUPLICATE_SHIFT"

    def __init__(self, shift_id: str, key: str | None = None):
        self.shift_id = shift_id
        super().__init__("append", key, f"shift id already stored: {shift_id}")
