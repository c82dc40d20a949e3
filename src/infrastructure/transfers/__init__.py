"""Value-transfer adapters."""

from .in_memory import InMemoryValueTransfer

__all__ = ["InMemoryValueTransfer"]
