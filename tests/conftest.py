"""
Pytest fixtures for the FieldFlow approvals test suite.

Provides:
- In-memory SQLite engine and session per test
- A deterministic clock
- Directory and workflow fixtures shared by the layer suites
- Structured log capture
"""

import json
import logging
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import fieldflow_kernel.models  # noqa: F401
from fieldflow_kernel.db.base import Base
from fieldflow_kernel.domain.clock import DeterministicClock
from fieldflow_kernel.domain.directory import Actor, Employee
from fieldflow_kernel.domain.workflow import Workflow
from fieldflow_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from tests.builders import make_actor, make_level, make_workflow


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, handler=logging.NullHandler())
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
    Capture fieldflow logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, adapter):
            adapter.submit("ts-1")
            logs = captured_logs()
            assert any(r["message"] == "approval_transition" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fieldflow")
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
def engine():
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def employees() -> tuple[Employee, ...]:
    """A small crew: two supervisors, a PM, an admin, a worker and a leaver."""
    return (
        Employee("e-sup1", "Sam Supervisor", job_title="Supervisor", app_role="supervisor"),
        Employee("e-sup2", "Sky Supervisor", job_title="Supervisor", app_role="supervisor"),
        Employee("e-pm", "Pat Manager", job_title="PM", app_role="pm"),
        Employee("e-admin", "Ari Admin", job_title="Admin", app_role="super-admin"),
        Employee("e-worker", "Wes Worker", job_title="Worker"),
        Employee("e-gone", "Gus Gone", job_title="Supervisor", is_active=False),
    )


@pytest.fixture
def two_level_workflow() -> Workflow:
    """L1 {Users, [u1]}, L2 {Users, [u2]} governing timesheets."""
    return make_workflow(make_level(1, ("u1",)), make_level(2, ("u2",)))


@pytest.fixture
def u1() -> Actor:
    return make_actor("u1")


@pytest.fixture
def u2() -> Actor:
    return make_actor("u2")
