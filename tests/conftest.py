"""
Pytest fixtures for the billing kernel test suite.

Provides:
- Structured logging configured once per session, plus a capture fixture
- In-memory collaborators for every kernel port (see tests/fakes.py)
- A SQLite in-memory session for the SQL collaborator tests
"""

import json
import logging
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from billing_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from billing_kernel.domain.clock import DeterministicClock
from billing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from billing_kernel.services.invalidation import InvalidationBus
from tests.fakes import InMemoryAccounts, InMemoryCatalog, InMemoryLedger, InMemoryUsage


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
    Capture billing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger_service):
            ledger_service.append_entry(...)
            logs = captured_logs()
            assert any(r["message"] == "ledger_entry_appended" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("billing_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "sql: mark test as using the SQLite in-memory collaborator"
    )
    config.addinivalue_line(
        "markers", "concurrency: mark test as exercising concurrent readers and writers"
    )


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# =============================================================================
# In-memory collaborators
# =============================================================================


@pytest.fixture
def bus() -> InvalidationBus:
    return InvalidationBus()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def accounts() -> InMemoryAccounts:
    return InMemoryAccounts()


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@pytest.fixture
def usage() -> InMemoryUsage:
    return InMemoryUsage()


# =============================================================================
# SQL collaborator
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database per test."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    sess = get_session()
    yield sess
    try:
        sess.close()
    finally:
        drop_tables()
        reset_engine()
