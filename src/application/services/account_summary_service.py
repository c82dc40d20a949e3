"""Account Summary Service - read-only view combining ledger and copy-trading state."""

from dataclasses import dataclass, field
from typing import Any

from ...domain.entities import Position
from ...domain.services import CopyTradingDelegate, PositionLedger


@dataclass(frozen=True)
class AccountSummary:
    """Point-in-time snapshot of one account."""

    account: str
    active_positions: list[Position]
    total_invested: int
    unrealized_pnl: int
    pooled_balance: int
    vault_positions: dict[str, int] = field(default_factory=dict)
    following_count: int = 0
    follower_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "active_positions": [p.to_dict() for p in self.active_positions],
            "total_invested": self.total_invested,
            "unrealized_pnl": self.unrealized_pnl,
            "pooled_balance": self.pooled_balance,
            "vault_positions": dict(self.vault_positions),
            "following_count": self.following_count,
            "follower_count": self.follower_count,
        }


class AccountSummaryService:
    """Builds account summaries. Never mutates state and ignores the circuit breaker."""

    def __init__(self, ledger: PositionLedger, delegate: CopyTradingDelegate) -> None:
        self.ledger = ledger
        self.delegate = delegate

    def summarize(self, account: str) -> AccountSummary:
        """Summarize an account's positions and copy-trading balances.

        Raises:
            PriceError: If a price needed for the unrealized PnL cannot be read
        """
        copy_summary = self.delegate.summary(account)
        return AccountSummary(
            account=account,
            active_positions=self.ledger.get_active_positions(account),
            total_invested=self.ledger.total_invested(account),
            unrealized_pnl=self.ledger.total_unrealized_pnl(account),
            pooled_balance=copy_summary.pooled_balance,
            vault_positions=copy_summary.vault_positions,
            following_count=copy_summary.following_count,
            follower_count=copy_summary.follower_count,
        )
