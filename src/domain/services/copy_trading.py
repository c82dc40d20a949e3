"""
Copy-Trading Delegate - mirrors a trader's position changes for followers.

Followers deposit value into a pooled balance and follow a trader at a fixed
percentage. A trusted automation account then relays the trader's actions:

- ``execute_copy_trade`` commits ``trader_amount * percentage / 100`` of the
  follower's pooled balance to the follower's vault position for the asset and
  opens that amount on the position ledger in the follower's name.
- ``execute_copy_sell`` releases ``vault * sell_percentage / 100`` from the
  vault position and partially sells it on the ledger; the payout goes from the
  ledger straight to the follower.

The delegate is a client of the ledger's public operations. Both privileged
operations check the caller against ``AccessControl.is_authorized`` before any
state is touched, and each runs in a single unit-of-work block together with
the ledger call it makes, so a failing ledger call leaves no partial debit.
"""

# Standard library imports
import logging
from dataclasses import dataclass, field

from ..constants import MAX_PERCENTAGE, MIN_PERCENTAGE, PERCENT_DENOMINATOR
from ..entities import FollowingRelationship
from ..events import (
    CopySellExecuted,
    FundsDeposited,
    FundsWithdrawn,
    TradeCopied,
    TraderFollowed,
    TraderUnfollowed,
)
from ..exceptions import ValidationError
from ..exceptions_ledger import (
    InsufficientBalanceError,
    InvalidPercentageError,
    NotFollowingError,
    SelfFollowError,
    UnauthorizedCallerError,
)
from ..interfaces import IValueTransfer
from ..value_objects import mul_div
from .access_control import AccessControl, Role
from .circuit_breaker import CircuitBreaker
from .partial_sell_allocator import PartialSellResult
from .position_ledger import PositionLedger, validate_amount
from .unit_of_work import LedgerUnitOfWork
from .value_transfer_gateway import send_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyTradeResult:
    follower: str
    trader: str
    asset: str
    amount: int
    position_index: int


@dataclass(frozen=True)
class CopyTradingSummary:
    """Copy-trading view of one account."""

    account: str
    pooled_balance: int
    following_count: int
    follower_count: int
    vault_positions: dict[str, int] = field(default_factory=dict)


class CopyTradingDelegate:
    """Following relationships, pooled balances and vault positions."""

    def __init__(
        self,
        ledger: PositionLedger,
        access_control: AccessControl,
        circuit_breaker: CircuitBreaker,
        value_transfer: IValueTransfer,
        unit_of_work: LedgerUnitOfWork,
    ) -> None:
        self._ledger = ledger
        self._access = access_control
        self._breaker = circuit_breaker
        self._transfer = value_transfer
        self._uow = unit_of_work

        self._pooled: dict[str, int] = {}
        self._relationships: dict[tuple[str, str], FollowingRelationship] = {}
        self._vault: dict[tuple[str, str], int] = {}

    # Follower self-service

    def deposit(self, account: str, amount: int) -> None:
        """Credit value sent with the call to the account's pooled balance."""
        with self._uow.atomic("deposit"):
            self._breaker.ensure_disengaged("deposit")
            if not account:
                raise ValidationError("Account cannot be empty", field="account")
            validate_amount(amount)

            self._credit_pooled(account, amount)
            self._uow.emit(FundsDeposited(account=account, amount=amount))
            logger.info(
                f"Deposited {amount} for {account}",
                extra={"operation_type": "deposit", "account": account},
            )

    def follow(self, follower: str, trader: str, percentage: int) -> None:
        """Start (or re-weight) following a trader.

        Raises:
            InvalidPercentageError: If percentage is outside [1, 100]
            SelfFollowError: If trader is the follower
            InsufficientBalanceError: If the follower has no pooled balance
        """
        with self._uow.atomic("follow"):
            self._breaker.ensure_disengaged("follow")
            self._check_percentage(percentage)
            if trader == follower:
                raise SelfFollowError(follower)
            if not trader:
                raise ValidationError("Trader cannot be empty", field="trader")

            balance = self.pooled_balance(follower)
            if balance <= 0:
                raise InsufficientBalanceError("pooled", 1, balance, account=follower)

            key = (follower, trader)
            relationship = self._relationships.get(key)
            if relationship is None:
                self._uow.track_key(self._relationships, key)
                relationship = FollowingRelationship(follower=follower, trader=trader)
                self._relationships[key] = relationship
            self._uow.track(relationship)
            relationship.activate(percentage)

            self._uow.emit(TraderFollowed(follower=follower, trader=trader, percentage=percentage))
            logger.info(
                f"{follower} follows {trader} at {percentage}%",
                extra={"operation_type": "follow", "account": follower, "trader": trader},
            )

    def unfollow(self, follower: str, trader: str) -> None:
        """Stop following a trader. No precondition on the current state."""
        with self._uow.atomic("unfollow"):
            self._breaker.ensure_disengaged("unfollow")
            relationship = self._relationships.get((follower, trader))
            if relationship is not None:
                self._uow.track(relationship)
                relationship.deactivate()

            self._uow.emit(TraderUnfollowed(follower=follower, trader=trader))
            logger.info(
                f"{follower} unfollowed {trader}",
                extra={"operation_type": "unfollow", "account": follower, "trader": trader},
            )

    def withdraw_funds(self, account: str, amount: int) -> None:
        """Withdraw uncommitted value from the account's pooled balance.

        Raises:
            InsufficientBalanceError: If amount exceeds the pooled balance
            TransferFailedError: If the transfer fails
        """
        with self._uow.atomic("withdraw_funds"):
            self._breaker.ensure_disengaged("withdraw_funds")
            validate_amount(amount)

            balance = self.pooled_balance(account)
            if amount > balance:
                raise InsufficientBalanceError("pooled", amount, balance, account=account)

            self._credit_pooled(account, -amount)
            send_value(self._transfer, amount, account)

            self._uow.emit(FundsWithdrawn(account=account, amount=amount))
            logger.info(
                f"Withdrew {amount} for {account}",
                extra={"operation_type": "withdraw_funds", "account": account},
            )

    # Automation-only

    def execute_copy_trade(
        self, caller: str, follower: str, trader: str, asset: str, trader_amount: int
    ) -> CopyTradeResult:
        """Mirror a trader's open for a follower, scaled by the follow percentage.

        Raises:
            UnauthorizedCallerError: If caller lacks the automation role
            NotFollowingError: If the follower is not following the trader
            InsufficientBalanceError: If the pooled balance cannot cover the copy
            ValidationError/PriceError/StateError: From the ledger's open
        """
        self._require_automation(caller, "execute_copy_trade")

        with self._uow.atomic("execute_copy_trade"):
            self._breaker.ensure_disengaged("execute_copy_trade")
            validate_amount(trader_amount, field="trader_amount")
            relationship = self._active_relationship(follower, trader)

            copy_amount = mul_div(trader_amount, relationship.percentage, PERCENT_DENOMINATOR)
            balance = self.pooled_balance(follower)
            if balance < copy_amount:
                raise InsufficientBalanceError("pooled", copy_amount, balance, account=follower)

            self._credit_pooled(follower, -copy_amount)
            self._credit_vault(follower, asset, copy_amount)
            index = self._ledger.open(follower, asset, copy_amount)

            self._uow.emit(
                TradeCopied(follower=follower, trader=trader, asset=asset, amount=copy_amount)
            )
            logger.info(
                f"Copied {trader}'s {asset} trade for {follower}: {copy_amount}",
                extra={
                    "operation_type": "copy_trade",
                    "account": follower,
                    "trader": trader,
                    "asset": asset,
                },
            )
            return CopyTradeResult(
                follower=follower,
                trader=trader,
                asset=asset,
                amount=copy_amount,
                position_index=index,
            )

    def execute_copy_sell(
        self, caller: str, follower: str, trader: str, asset: str, sell_percentage: int
    ) -> PartialSellResult:
        """Mirror a trader's sell by releasing a share of the follower's vault position.

        The vault entry is reduced before the ledger's partial sell runs.

        Raises:
            UnauthorizedCallerError: If caller lacks the automation role
            InvalidPercentageError: If sell_percentage is outside [1, 100]
            NotFollowingError: If the follower is not following the trader
            InsufficientBalanceError: If the vault position is empty
            ValidationError/StateError/TransferError: From the ledger's partial sell
        """
        self._require_automation(caller, "execute_copy_sell")

        with self._uow.atomic("execute_copy_sell"):
            self._breaker.ensure_disengaged("execute_copy_sell")
            self._check_percentage(sell_percentage, field="sell_percentage")
            self._active_relationship(follower, trader)

            vault_amount = self.vault_position(follower, asset)
            if vault_amount == 0:
                raise InsufficientBalanceError("vault", 1, 0, account=follower, asset=asset)

            sell_amount = mul_div(vault_amount, sell_percentage, PERCENT_DENOMINATOR)
            self._credit_vault(follower, asset, -sell_amount)
            result = self._ledger.partial_sell(follower, asset, sell_amount)

            self._uow.emit(
                CopySellExecuted(
                    follower=follower,
                    trader=trader,
                    asset=asset,
                    amount=sell_amount,
                    realized_pnl=result.pnl,
                )
            )
            logger.info(
                f"Copied {trader}'s {asset} sell for {follower}: {sell_amount}",
                extra={
                    "operation_type": "copy_sell",
                    "account": follower,
                    "trader": trader,
                    "asset": asset,
                },
            )
            return result

    # Helpers

    def _require_automation(self, caller: str, operation: str) -> None:
        if not self._access.is_authorized(caller):
            logger.warning(
                f"Rejected {operation} from {caller}",
                extra={"operation_type": "authorization", "caller": caller},
            )
            raise UnauthorizedCallerError(caller, Role.AUTOMATION.value, operation)

    @staticmethod
    def _check_percentage(percentage: int, field: str = "percentage") -> None:
        if isinstance(percentage, bool) or not isinstance(percentage, int):
            raise InvalidPercentageError(percentage, field=field)
        if not MIN_PERCENTAGE <= percentage <= MAX_PERCENTAGE:
            raise InvalidPercentageError(percentage, field=field)

    def _active_relationship(self, follower: str, trader: str) -> FollowingRelationship:
        relationship = self._relationships.get((follower, trader))
        if relationship is None or not relationship.active:
            raise NotFollowingError(follower, trader)
        return relationship

    def _credit_pooled(self, account: str, delta: int) -> None:
        self._uow.track_key(self._pooled, account)
        self._pooled[account] = self._pooled.get(account, 0) + delta

    def _credit_vault(self, follower: str, asset: str, delta: int) -> None:
        key = (follower, asset)
        self._uow.track_key(self._vault, key)
        self._vault[key] = self._vault.get(key, 0) + delta

    # Queries

    def pooled_balance(self, account: str) -> int:
        with self._uow.reading():
            return self._pooled.get(account, 0)

    def vault_position(self, follower: str, asset: str) -> int:
        with self._uow.reading():
            return self._vault.get((follower, asset), 0)

    def get_relationship(self, follower: str, trader: str) -> FollowingRelationship | None:
        with self._uow.reading():
            relationship = self._relationships.get((follower, trader))
            if relationship is None:
                return None
            return FollowingRelationship(
                follower=relationship.follower,
                trader=relationship.trader,
                percentage=relationship.percentage,
                active=relationship.active,
                updated_at=relationship.updated_at,
            )

    def is_following(self, follower: str, trader: str) -> bool:
        with self._uow.reading():
            relationship = self._relationships.get((follower, trader))
            return relationship is not None and relationship.active

    def following_count(self, follower: str) -> int:
        """Number of traders the account actively follows."""
        with self._uow.reading():
            return sum(
                1 for (f, _), rel in self._relationships.items() if f == follower and rel.active
            )

    def follower_count(self, trader: str) -> int:
        """Number of accounts actively following the trader."""
        with self._uow.reading():
            return sum(
                1 for (_, t), rel in self._relationships.items() if t == trader and rel.active
            )

    def summary(self, account: str) -> CopyTradingSummary:
        with self._uow.reading():
            return CopyTradingSummary(
                account=account,
                pooled_balance=self.pooled_balance(account),
                following_count=self.following_count(account),
                follower_count=self.follower_count(account),
                vault_positions={
                    asset: amount
                    for (follower, asset), amount in self._vault.items()
                    if follower == account and amount > 0
                },
            )
