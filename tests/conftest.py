"""
Pytest fixtures for the shift kernel test suite.

Provides:
- Structured logging for the session, plus a captured_logs fixture
- A DeterministicClock pinned to a weekday morning in a fixed-offset zone
- Memory-backed stores and services wired to that clock
- An in-memory SQLite engine for the SQL backend
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from io import StringIO

import pytest

from shift_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from shift_kernel.domain.clock import DeterministicClock
from shift_kernel.domain.defaults import ResolvedDefaults
from shift_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from shift_kernel.selectors.shift_selector import ShiftSelector
from shift_kernel.services.catalog_service import CatalogService
from shift_kernel.services.punch_lifecycle import PunchLifecycle
from shift_kernel.services.shift_service import ShiftService
from shift_kernel.stores.json_store import JsonActivePunchStore, JsonShiftStore
from shift_kernel.stores.kv import MemoryKeyValueBackend, SqlKeyValueBackend

# UTC-5, no DST: calendar days are unambiguous in every test.
LOCAL_TZ = timezone(timedelta(hours=-5), "TEST")

# Monday 2024-01-15 09:00 local.
START_OF_TESTS = datetime(2024, 1, 15, 9, 0, tzinfo=LOCAL_TZ)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture shift_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, lifecycle):
            lifecycle.start(...)
            logs = captured_logs()
            assert any(r["message"] == "punch_started" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("shift_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Time
# =============================================================================


@pytest.fixture
def local_tz():
    return LOCAL_TZ


@pytest.fixture
def clock():
    return DeterministicClock(START_OF_TESTS)


# =============================================================================
# Stores and services (memory backend)
# =============================================================================


@pytest.fixture
def backend():
    return MemoryKeyValueBackend()


@pytest.fixture
def shift_store(backend):
    return JsonShiftStore(backend)


@pytest.fixture
def active_store(backend):
    return JsonActivePunchStore(backend)


@pytest.fixture
def lifecycle(active_store, shift_store, clock):
    return PunchLifecycle(active_store, shift_store, clock=clock, tz=LOCAL_TZ)


@pytest.fixture
def shift_service(shift_store, clock):
    return ShiftService(shift_store, clock=clock, tz=LOCAL_TZ)


@pytest.fixture
def catalog(backend, clock):
    return CatalogService(backend, clock=clock)


@pytest.fixture
def selector(shift_store):
    return ShiftSelector(shift_store)


@pytest.fixture
def workplace(catalog):
    return catalog.add_workplace("Blue Door Diner", default_hourly_wage="15.00")


@pytest.fixture
def role(catalog):
    return catalog.add_role("Server", default_hourly_wage="12.50", default_break_minutes=15)


@pytest.fixture
def wage_defaults():
    """$10/h, no unpaid break."""
    return ResolvedDefaults(hourly_wage=Decimal("10"), break_minutes=30, unpaid_break=False)


# =============================================================================
# SQL backend
# =============================================================================


@pytest.fixture
def sql_engine():
    engine = init_engine_from_url("sqlite://")
    create_tables(engine)
    yield engine
    reset_engine()


@pytest.fixture
def sql_backend(sql_engine, clock):
    return SqlKeyValueBackend(get_session_factory(), clock=clock)
