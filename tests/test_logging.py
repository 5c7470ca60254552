"""
Tests for structured JSON logging (shift_kernel/logging_config.py).

Verifies:
- One JSON object per line with level, logger, message and timestamp
- extra fields and bound LogContext fields are merged into the record
- Kernel exceptions surface their code and attributes as exc_* fields
- Domain values (UUID, Decimal, timedelta, enums) serialize cleanly
- configure_logging is idempotent and accepts level names
- reset_logging removes only the handler configure_logging installed
"""

import json
import logging
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from shift_kernel.exceptions import ActivePunchConflictError, PersistenceError
from shift_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from shift_kernel.services.punch_lifecycle import PunchState


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def log_stream():
    """Configure logging into a buffer; returns a reader for parsed lines."""
    stream = StringIO()
    configure_logging(stream=stream)

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return _read


def _structured_handlers() -> list[logging.Handler]:
    return [
        h
        for h in logging.getLogger("shift_kernel").handlers
        if isinstance(h.formatter, StructuredFormatter)
    ]


class TestRecordShape:
    def test_core_fields(self, log_stream):
        get_logger("services.punch").info("punch_started")

        (record,) = log_stream()
        assert record["level"] == "INFO"
        assert record["message"] == "punch_started"
        assert record["logger"] == "shift_kernel.services.punch"
        assert record["ts"].endswith("+00:00")

    def test_extra_fields(self, log_stream):
        get_logger("test").info(
            "punch_stopped",
            extra={"worked_minutes": 480, "total_earned": Decimal("150.00")},
        )

        (record,) = log_stream()
        assert record["worked_minutes"] == 480
        assert record["total_earned"] == "150.00"

    def test_domain_values_serialize(self, log_stream):
        shift_id = uuid4()
        get_logger("test").info(
            "tick",
            extra={
                "shift_id": shift_id,
                "elapsed": timedelta(hours=2, minutes=30),
                "state": PunchState.ACTIVE,
            },
        )

        (record,) = log_stream()
        assert record["shift_id"] == str(shift_id)
        assert record["elapsed"] == 9000.0
        assert record["state"] == "active"

    def test_debug_filtered_at_info(self, log_stream):
        logger = get_logger("test")
        logger.debug("hidden")
        logger.warning("shown")
        assert [r["message"] for r in log_stream()] == ["shown"]


class TestExceptionFields:
    def test_plain_exception(self, log_stream):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").exception("failed")

        (record,) = log_stream()
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "Traceback" in record["traceback"]

    def test_persistence_error_details(self, log_stream):
        try:
            raise PersistenceError("write", "shifts_v1", "disk full")
        except PersistenceError:
            get_logger("test").exception("store_failed")

        (record,) = log_stream()
        assert record["exc_code"] == "PERSISTENCE_ERROR"
        assert record["exc_operation"] == "write"
        assert record["exc_key"] == "shifts_v1"
        assert record["exc_detail"] == "disk full"

    def test_conflict_carries_active_punch_id(self, log_stream):
        try:
            raise ActivePunchConflictError("p-9")
        except ActivePunchConflictError:
            get_logger("test").warning("rejected", exc_info=True)

        (record,) = log_stream()
        assert record["exc_code"] == "ACTIVE_PUNCH_CONFLICT"
        assert record["exc_active_punch_id"] == "p-9"


class TestLogContext:
    def test_fields_appear_on_records(self, log_stream):
        LogContext.set(correlation_id="abc-123", punch_id="p-1")
        get_logger("test").info("with_context")

        (record,) = log_stream()
        assert record["correlation_id"] == "abc-123"
        assert record["punch_id"] == "p-1"
        assert "shift_id" not in record

    def test_no_fields_when_empty(self, log_stream):
        get_logger("test").info("bare")
        (record,) = log_stream()
        assert not {"correlation_id", "punch_id", "shift_id"} & set(record)

    def test_set_is_additive_and_ignores_none(self):
        LogContext.set(correlation_id="x")
        LogContext.set(shift_id="y", correlation_id=None)
        assert LogContext.get_all() == {"correlation_id": "x", "shift_id": "y"}

    def test_clear(self):
        LogContext.set(punch_id="p")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(punch_id="outer")
        with LogContext.bind(punch_id="inner"):
            assert LogContext.get_all()["punch_id"] == "inner"
        assert LogContext.get_all()["punch_id"] == "outer"

    def test_bind_restores_after_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(shift_id="temp"):
                raise RuntimeError("inside")
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            LogContext.set(workplace="Diner")

    def test_snapshot_is_a_copy(self):
        LogContext.set(punch_id="p")
        LogContext.get_all()["punch_id"] = "tampered"
        assert LogContext.get_all()["punch_id"] == "p"


class TestConfigureLogging:
    def test_idempotent(self):
        reset_logging()
        first, second = StringIO(), StringIO()
        configure_logging(stream=first)
        configure_logging(stream=second)

        assert len(_structured_handlers()) == 1
        get_logger("test").warning("once")
        assert first.getvalue()
        assert second.getvalue() == ""

    def test_level_by_name(self):
        reset_logging()
        configure_logging(level="warning", stream=StringIO())
        assert logging.getLogger("shift_kernel").level == logging.WARNING
        reset_logging()
        configure_logging(level="debug", stream=StringIO())
        assert logging.getLogger("shift_kernel").level == logging.DEBUG

    def test_unknown_level_name(self):
        reset_logging()
        with pytest.raises(KeyError):
            configure_logging(level="LOUD")

    def test_reset_allows_reconfigure(self):
        reset_logging()
        configure_logging(stream=StringIO())
        reset_logging()
        assert _structured_handlers() == []

        stream = StringIO()
        configure_logging(stream=stream)
        get_logger("test").warning("again")
        assert len(_structured_handlers()) == 1
        assert json.loads(stream.getvalue())["message"] == "again"

    def test_reset_leaves_foreign_handlers(self):
        reset_logging()
        foreign = logging.NullHandler()
        kernel_logger = logging.getLogger("shift_kernel")
        kernel_logger.addHandler(foreign)
        try:
            configure_logging(stream=StringIO())
            reset_logging()
            assert foreign in kernel_logger.handlers
        finally:
            kernel_logger.removeHandler(foreign)

    def test_child_logger_name(self):
        assert get_logger("deep.nested.module").name == "shift_kernel.deep.nested.module"
