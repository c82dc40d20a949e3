"""Audit trail of committed ledger events."""

from .event_log import InMemoryEventLog

__all__ = ["InMemoryEventLog"]
