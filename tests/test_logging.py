"""Tests for the structured logging system (fieldflow_kernel/logging_config.py)."""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from uuid import uuid4

import pytest

from fieldflow_kernel.domain.record import ApprovalStatus
from fieldflow_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG, handler=logging.NullHandler())


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "fieldflow.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("approval_transition", extra={"to_level": 2, "outcome": "escalated"})

        record = _parse_log(stream)
        assert record["to_level"] == 2
        assert record["outcome"] == "escalated"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(record_id="ts-1", form_type="timesheet")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["record_id"] == "ts-1"
        assert record["form_type"] == "timesheet"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_fieldflow_exception_code_extracted(self):
        """FieldFlow exceptions carry a .code attribute and structured fields."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from fieldflow_kernel.exceptions import UnauthorizedActorError

        try:
            raise UnauthorizedActorError("ts-1", "u9", 2)
        except UnauthorizedActorError:
            logger.error("approve_refused", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "UNAUTHORIZED_ACTOR"
        assert record["exc_type"] == "UnauthorizedActorError"
        assert record["exc_actor_id"] == "u9"
        assert record["exc_level_number"] == 2

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "record_id" not in record
        assert "actor_id" not in record

    def test_uuid_enum_and_datetime_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        at = datetime(2025, 3, 3, 7, 0, tzinfo=timezone.utc)
        get_logger("test").info(
            "mixed", extra={"entry_id": uid, "status": ApprovalStatus.APPROVED, "at": at},
        )

        record = _parse_log(stream)
        assert record["entry_id"] == str(uid)
        assert record["status"] == "approved"
        assert record["at"] == at.isoformat()

    def test_sets_sorted_and_unknown_objects_stringified(self):
        class Opaque:
            def __str__(self):
                return "opaque-value"

        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info(
            "odd_types", extra={"approvers": frozenset({"u2", "u1"}), "thing": Opaque()},
        )

        record = _parse_log(stream)
        assert record["approvers"] == ["u1", "u2"]
        assert record["thing"] == "opaque-value"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # Default level is INFO, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= record.keys()


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", record_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "record_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(actor_id="outer")
        with LogContext.bind(actor_id="inner"):
            assert LogContext.get_all()["actor_id"] == "inner"
        assert LogContext.get_all()["actor_id"] == "outer"

    def test_bind_restores_none(self):
        assert "workflow_id" not in LogContext.get_all()
        with LogContext.bind(workflow_id="wf-1"):
            assert LogContext.get_all()["workflow_id"] == "wf-1"
        assert "workflow_id" not in LogContext.get_all()

    def test_bind_ignores_none_values(self):
        LogContext.set(workflow_id="wf-1")
        with LogContext.bind(workflow_id=None):
            assert LogContext.get_all()["workflow_id"] == "wf-1"

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            actor_id="a",
            record_id="r",
            form_type="timesheet",
            workflow_id="w",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 5
        assert ctx["form_type"] == "timesheet"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        handlers = logging.getLogger("fieldflow").handlers
        assert h1 in handlers
        assert h2 not in handlers

    def test_get_logger_returns_child(self):
        assert get_logger("services.record_adapter").name == "fieldflow.services.record_adapter"

    def test_logger_hierarchy(self):
        """Child loggers inherit the fieldflow root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "fieldflow.deep.nested.module"
