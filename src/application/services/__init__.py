"""Application services orchestrating the ledger's domain services."""

from .account_summary_service import AccountSummary, AccountSummaryService
from .admin_service import AdminService

__all__ = ["AccountSummary", "AccountSummaryService", "AdminService"]
