"""
Infrastructure Monitoring Module

Structured logging with correlation IDs and OpenTelemetry trace context for
ledger operations.
"""

from .logging import (
    LedgerJSONFormatter,
    LedgerLogRecord,
    correlation_context,
    get_correlation_id,
    log_ledger_operation,
    setup_structured_logging,
)

__all__ = [
    "LedgerJSONFormatter",
    "LedgerLogRecord",
    "correlation_context",
    "get_correlation_id",
    "log_ledger_operation",
    "setup_structured_logging",
]
