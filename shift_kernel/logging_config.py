"""
Structured JSON logging for the shift kernel.

Every record is one JSON object per line:

    {"ts": "...", "level": "INFO", "logger": "shift_kernel.services.punch",
     "message": "punch_stopped", "punch_id": "...", "worked_minutes": 480}

Messages are snake_case event names; details travel in ``extra``.  Fields
bound through LogContext (which punch or shift an operation is about) are
merged into every record emitted while they are bound.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

LOGGER_PREFIX = "shift_kernel"

CONTEXT_FIELDS: tuple[str, ...] = ("correlation_id", "punch_id", "shift_id")

_context: ContextVar[dict[str, str]] = ContextVar("shift_log_context", default={})


def _checked(fields: dict[str, str | None]) -> dict[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
    return {k: v for k, v in fields.items() if v is not None}


class LogContext:
    """
    Operation-scoped log fields, safe across threads and tasks.

    The bound fields live in one ContextVar holding an immutable snapshot;
    every change installs a fresh dict, so a worker thread never sees a
    half-updated context.
    """

    @staticmethod
    def set(**fields: str | None) -> None:
        """Add or replace fields.  None values leave a field untouched."""
        _context.set({**_context.get(), **_checked(fields)})

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """Bind fields for the duration of a ``with`` block."""
        token = _context.set({**_context.get(), **_checked(fields)})
        try:
            yield
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # Kernel exceptions keep their details as public attributes
    # (field, reason, operation, key, active_punch_id...).
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Renders a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        for name, value in vars(record).items():
            if name not in _RECORD_ATTRS:
                payload.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_jsonable)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``shift_kernel.`` namespace."""
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


_configured = False
_installed_handler: logging.Handler | None = None
_setup_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on the ``shift_kernel`` logger.

    Only the first call has any effect until reset_logging() runs.
    ``level`` takes a number or a name ("DEBUG", "info").
    """
    global _configured, _installed_handler
    if isinstance(level, str):
        level = logging.getLevelNamesMapping()[level.upper()]

    with _setup_lock:
        if _configured:
            return
        _configured = True

        target = handler or logging.StreamHandler(stream or sys.stderr)
        target.setFormatter(StructuredFormatter())

        root = logging.getLogger(LOGGER_PREFIX)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(target)
        _installed_handler = target


def reset_logging() -> None:
    """Drop the handler configure_logging() installed.  Tests only."""
    global _configured, _installed_handler
    with _setup_lock:
        _configured = False
        if _installed_handler is not None:
            logging.getLogger(LOGGER_PREFIX).removeHandler(_installed_handler)
            _installed_handler = None
