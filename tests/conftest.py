"""
Pytest fixtures for the housing kernel test suite.

Provides:
- Structured logging configuration and log capture
- In-memory SQLite snapshot store sessions
- Deterministic clock and default configuration
"""

import json
import logging
from datetime import date
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from housing_config import RecognitionConfig, get_recognition_config
from housing_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from housing_kernel.domain.clock import DeterministicClock
from housing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Reference date used across the suite: mid-September 2025
REFERENCE_DATE = date(2025, 9, 15)


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
    Capture housing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            engine.allocate(...)
            logs = captured_logs()
            assert any(r["message"] == "rent_allocation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("housing_kernel")
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
# Database fixtures
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Session on a fresh in-memory SQLite snapshot store."""
    init_engine_from_url("sqlite://")
    create_tables()
    db_session = get_session()
    try:
        yield db_session
    finally:
        db_session.rollback()
        db_session.close()
        drop_tables()
        reset_engine()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock.on(REFERENCE_DATE)


@pytest.fixture
def recognition_config() -> RecognitionConfig:
    return get_recognition_config()
