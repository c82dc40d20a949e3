"""
Unit tests for structured ledger logging.

Tests correlation context, the JSON formatter, the operation decorator and
logging setup.
"""

import json
import logging
import sys
from contextlib import contextmanager

import pytest

from src.infrastructure.monitoring import (
    LedgerJSONFormatter,
    LedgerLogRecord,
    correlation_context,
    get_correlation_id,
    log_ledger_operation,
    setup_structured_logging,
)


def make_record(**extra) -> logging.LogRecord:
    record = LedgerLogRecord("ledger.test", logging.INFO, __file__, 10, "opened %s", ("X",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@contextmanager
def preserved_root_logging():
    """Restore root handlers, level and record factory on exit."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    factory = logging.getLogRecordFactory()
    try:
        yield
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            if handler not in handlers:
                handler.close()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)
        logging.setLogRecordFactory(factory)


class TestCorrelationContext:
    """Test correlation ID scoping."""

    def test_explicit_id(self):
        """Test that the given ID is active inside the block only."""
        assert get_correlation_id() is None
        with correlation_context("req-1") as correlation_id:
            assert correlation_id == "req-1"
            assert get_correlation_id() == "req-1"
        assert get_correlation_id() is None

    def test_generated_id(self):
        """Test that an ID is generated when none is given."""
        with correlation_context() as correlation_id:
            assert correlation_id
            assert get_correlation_id() == correlation_id

    def test_nested_contexts_restore(self):
        """Test that leaving a nested block restores the outer ID."""
        with correlation_context("outer"):
            with correlation_context("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"


class TestLedgerJSONFormatter:
    """Test JSON log formatting."""

    def test_basic_fields(self):
        """Test the standard entry layout."""
        entry = json.loads(LedgerJSONFormatter().format(make_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "ledger.test"
        assert entry["message"] == "opened X"
        assert "correlation_id" not in entry
        assert "ledger" not in entry

    def test_correlation_id_captured_at_creation(self):
        """Test that records pick up the active correlation ID."""
        with correlation_context("req-42"):
            record = make_record()

        entry = json.loads(LedgerJSONFormatter().format(record))
        assert entry["correlation_id"] == "req-42"

    def test_ledger_fields_grouped(self):
        """Test that ledger fields are separated from other extras."""
        record = make_record(account="alice", asset="X", operation_type="open", duration_ms=1.5)

        entry = json.loads(LedgerJSONFormatter().format(record))

        assert entry["ledger"] == {"account": "alice", "asset": "X", "operation_type": "open"}
        assert entry["extra"] == {"duration_ms": 1.5}

    def test_extra_can_be_excluded(self):
        """Test the include_extra switch."""
        record = make_record(duration_ms=1.5, tags={"a"})
        entry = json.loads(LedgerJSONFormatter(include_extra=False).format(record))
        assert "extra" not in entry

    def test_non_json_values_serialized(self):
        """Test that sets and arbitrary objects are rendered."""
        record = make_record(tags=("a", "b"), obj=object())
        entry = json.loads(LedgerJSONFormatter().format(record))

        assert entry["extra"]["tags"] == ["a", "b"]
        assert entry["extra"]["obj"].startswith("<object object")

    def test_exception_info(self):
        """Test exception rendering."""
        try:
            raise ValueError("bad amount")
        except ValueError:
            record = LedgerLogRecord(
                "ledger.test", logging.ERROR, __file__, 10, "failed", (), sys.exc_info()
            )

        entry = json.loads(LedgerJSONFormatter().format(record))
        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "bad amount"


class TestLogLedgerOperation:
    """Test the operation logging decorator."""

    def test_success(self, caplog):
        """Test the success record."""

        @log_ledger_operation("open_position")
        def operation(value):
            return value * 2

        with caplog.at_level(logging.INFO, logger=__name__):
            assert operation(21) == 42

        record = caplog.records[-1]
        assert record.name == __name__
        assert record.getMessage() == "Ledger operation open_position completed successfully"
        assert record.status == "success"
        assert record.duration_ms >= 0

    def test_failure_reraises(self, caplog):
        """Test that failures are logged at error level and propagated."""

        @log_ledger_operation("close_position")
        def operation():
            raise RuntimeError("boom")

        with caplog.at_level(logging.INFO, logger=__name__):
            with pytest.raises(RuntimeError, match="boom"):
                operation()

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.status == "error"
        assert record.error_type == "RuntimeError"
        assert record.operation_type == "close_position"

    def test_preserves_metadata(self):
        """Test functools.wraps behaviour."""

        @log_ledger_operation("noop")
        def documented():
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."


class TestSetupStructuredLogging:
    """Test logging setup."""

    def test_json_setup(self):
        """Test console handler, level and record factory."""
        with preserved_root_logging():
            setup_structured_logging(level="debug", format_type="json")

            root = logging.getLogger()
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, LedgerJSONFormatter)
            assert logging.getLogRecordFactory() is LedgerLogRecord

    def test_text_setup_with_file(self, tmp_path):
        """Test the text formatter and file output."""
        log_file = tmp_path / "ledger.log"
        with preserved_root_logging():
            setup_structured_logging(level="INFO", format_type="text", log_file=str(log_file))

            root = logging.getLogger()
            assert len(root.handlers) == 2
            assert not isinstance(root.handlers[0].formatter, LedgerJSONFormatter)

            for handler in root.handlers:
                handler.flush()

        assert "Structured logging configured successfully" in log_file.read_text()
