"""Tests for the structured logging system (housing_kernel/logging_config.py)."""

import json
import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from housing_engines.recognition import RecognitionWindow
from housing_kernel.domain.tenant_lifecycle import TenantStatus
from housing_kernel.exceptions import DepartureDateError
from housing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Start each test unconfigured; leave the suite-wide setup in place after."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


class TestStructuredFormatter:

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_all_logs(stream)[0]
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "housing_kernel.test"
        assert "ts" in record

    def test_extra_fields_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "allocated",
            extra={
                "total": Decimal("3500.00"),
                "reference_date": date(2025, 9, 15),
                "request_id": uid,
            },
        )

        record = _parse_all_logs(stream)[0]
        assert record["total"] == "3500.00"
        assert record["reference_date"] == "2025-09-15"
        assert record["request_id"] == str(uid)

    def test_datetimes_and_enums_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info(
            "status",
            extra={
                "changed_at": datetime(2025, 9, 15, 8, 30, tzinfo=UTC),
                "status": TenantStatus.HOUSED,
                "window": RecognitionWindow(1, 2),
            },
        )

        record = _parse_all_logs(stream)[0]
        assert record["changed_at"] == "2025-09-15T08:30:00+00:00"
        assert record["status"] == "housed"
        assert "months_before=1" in record["window"]

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(run_id="run-1", tenant_id="emp-1")
        get_logger("test").info("msg")

        record = _parse_all_logs(stream)[0]
        assert record["run_id"] == "run-1"
        assert record["tenant_id"] == "emp-1"

    def test_kernel_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise DepartureDateError(
                "emp-1", "resigned", date(2025, 10, 1), date(2025, 9, 15), "future"
            )
        except DepartureDateError:
            get_logger("test").error("status_error", exc_info=True)

        record = _parse_all_logs(stream)[0]
        assert record["exc_type"] == "DepartureDateError"
        assert record["exc_code"] == "INVALID_DEPARTURE_DATE"
        assert record["exc_tenant_id"] == "emp-1"
        assert record["exc_departure_date"] == "2025-10-01"
        assert "traceback" in record

    def test_debug_filtered_at_info(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.debug("second")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["first"]


class TestLogContext:

    def test_bind_restores_previous(self):
        LogContext.set(run_id="outer")
        with LogContext.bind(run_id="inner", actor_id="admin"):
            assert LogContext.get_all() == {"run_id": "inner", "actor_id": "admin"}
        assert LogContext.get_all() == {"run_id": "outer"}

    def test_bind_ignores_none(self):
        with LogContext.bind(run_id=None):
            assert LogContext.get_all() == {}

    def test_clear(self):
        LogContext.set(run_id="run-1", tenant_id="emp-1")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_set_merges_fields(self):
        LogContext.set(run_id="run-1")
        LogContext.set(actor_id="admin", run_id=None)
        assert LogContext.get_all() == {"run_id": "run-1", "actor_id": "admin"}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            LogContext.set(invoice_id="inv-1")
        with pytest.raises(TypeError):
            with LogContext.bind(record_id="inv-1"):
                pass


class TestConfigureLogging:

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)

        # pytest attaches its own capture handlers to the logger
        handlers = logging.getLogger("housing_kernel").handlers
        assert h1 in handlers
        assert h2 not in handlers

    def test_get_logger_returns_child(self):
        assert get_logger("engines.capping").name == "housing_kernel.engines.capping"
