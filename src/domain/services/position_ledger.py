"""Position Ledger domain service for the position lifecycle and settlement.

This module provides the PositionLedger service, which owns every account's
ordered position collection and the value held on their behalf. It opens
positions at the registry's current price, settles full closes, best-by-asset
closes and profit-only withdrawals through the PnL and settlement calculators,
and delegates multi-position partial sells to the PartialSellAllocator.

Every mutating operation:
    - Runs inside one unit-of-work block, so a failed precondition or a failed
      transfer leaves the ledger exactly as it was before the call
    - Consults the circuit breaker before touching state
    - Completes all bookkeeping (deactivate/reduce, held-value debit) before the
      value-transfer capability is invoked
    - Emits its event only once the outermost operation commits

Positions are never removed. Inactive entries are skipped by scans and
aggregates but stay in place, which keeps each index a stable identifier.

Example:
    >>> ledger = PositionLedger(registry, breaker, transfer, uow)
    >>> index = ledger.open("alice", "ETH", to_fixed("1.0"))
    >>> closed = ledger.close_by_index("alice", index)
    >>> closed.payout
    1000000000000000000
"""

# Standard library imports
import copy
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from ..constants import (
    DEFAULT_FEE_BPS,
    DEFAULT_MAX_OPEN_AMOUNT,
    DEFAULT_MIN_OPEN_AMOUNT,
    DEFAULT_MIN_SELL_AMOUNT,
    MAX_FEE_BPS,
)
from ..entities import Position
from ..events import (
    ExcessSwept,
    FeeRateChanged,
    LiquidityAdded,
    PositionClosed,
    PositionOpened,
    ProfitWithdrawn,
)
from ..exceptions import ValidationError
from ..exceptions_ledger import (
    InsufficientBalanceError,
    InsufficientLiquidityError,
    InvalidAmountError,
    NoActivePositionError,
    NoProfitError,
    PositionNotActiveError,
    PositionNotFoundError,
)
from ..interfaces import IValueTransfer
from .asset_registry import AssetRegistry
from .circuit_breaker import CircuitBreaker
from .partial_sell_allocator import PartialSellAllocator, PartialSellResult
from .pnl_calculator import compute_pnl
from .settlement_calculator import compute_settlement
from .unit_of_work import LedgerUnitOfWork
from .value_transfer_gateway import send_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClosedPosition:
    """Outcome of fully closing a position."""

    account: str
    asset: str
    index: int
    amount: int
    exit_price: int
    pnl: int
    payout: int
    fee: int


@dataclass(frozen=True)
class ProfitWithdrawal:
    """Outcome of withdrawing a position's profit while keeping it open."""

    account: str
    asset: str
    index: int
    pnl: int
    payout: int
    fee: int
    new_entry_price: int


def validate_amount(
    amount: int, minimum: int | None = None, maximum: int | None = None, field: str = "amount"
) -> None:
    """Check that an amount is a positive integer within optional bounds.

    Raises:
        InvalidAmountError: If the amount is not an int, not positive or out of bounds
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"{field} must be an integer", field=field, value=amount)
    if amount <= 0:
        raise InvalidAmountError(amount, minimum=minimum, maximum=maximum, field=field)
    if minimum is not None and amount < minimum:
        raise InvalidAmountError(amount, minimum=minimum, maximum=maximum, field=field)
    if maximum is not None and amount > maximum:
        raise InvalidAmountError(amount, minimum=minimum, maximum=maximum, field=field)


class PositionLedger:
    """Domain service owning per-account positions and held value."""

    def __init__(
        self,
        registry: AssetRegistry,
        circuit_breaker: CircuitBreaker,
        value_transfer: IValueTransfer,
        unit_of_work: LedgerUnitOfWork,
        fee_bps: int = DEFAULT_FEE_BPS,
        min_open_amount: int = DEFAULT_MIN_OPEN_AMOUNT,
        max_open_amount: int = DEFAULT_MAX_OPEN_AMOUNT,
        min_sell_amount: int = DEFAULT_MIN_SELL_AMOUNT,
    ) -> None:
        self._check_fee_bps(fee_bps)
        self._check_open_bounds(min_open_amount, max_open_amount)
        validate_amount(min_sell_amount, field="min_sell_amount")

        self.registry = registry
        self.circuit_breaker = circuit_breaker
        self.unit_of_work = unit_of_work
        self._transfer = value_transfer

        self._fee_bps = fee_bps
        self._min_open_amount = min_open_amount
        self._max_open_amount = max_open_amount
        self._min_sell_amount = min_sell_amount

        self._positions: dict[str, list[Position]] = {}
        self._held_balance = 0
        self._total_invested = 0
        self._collected_fees = 0

        self._allocator = PartialSellAllocator(self)

    # Configuration

    @property
    def fee_bps(self) -> int:
        with self.unit_of_work.reading():
            return self._fee_bps

    @property
    def min_open_amount(self) -> int:
        with self.unit_of_work.reading():
            return self._min_open_amount

    @property
    def max_open_amount(self) -> int:
        with self.unit_of_work.reading():
            return self._max_open_amount

    @property
    def min_sell_amount(self) -> int:
        with self.unit_of_work.reading():
            return self._min_sell_amount

    @staticmethod
    def _check_fee_bps(fee_bps: int) -> None:
        if isinstance(fee_bps, bool) or not isinstance(fee_bps, int):
            raise ValidationError("Fee rate must be an integer", field="fee_bps", value=fee_bps)
        if not 0 <= fee_bps <= MAX_FEE_BPS:
            raise ValidationError(
                f"Fee rate must be between 0 and {MAX_FEE_BPS} bps",
                field="fee_bps",
                value=fee_bps,
                constraint=f"0..{MAX_FEE_BPS}",
            )

    @staticmethod
    def _check_open_bounds(minimum: int, maximum: int) -> None:
        validate_amount(minimum, field="min_open_amount")
        validate_amount(maximum, field="max_open_amount")
        if minimum > maximum:
            raise ValidationError(
                "Minimum open amount cannot exceed maximum",
                field="min_open_amount",
                value=minimum,
                constraint=f"<= {maximum}",
            )

    def set_fee_bps(self, fee_bps: int) -> None:
        self._check_fee_bps(fee_bps)
        with self.unit_of_work.atomic("set_fee_bps"):
            old_fee_bps = self._fee_bps
            self.unit_of_work.track_attr(self, "_fee_bps")
            self._fee_bps = fee_bps
            self.unit_of_work.emit(FeeRateChanged(old_fee_bps=old_fee_bps, new_fee_bps=fee_bps))
            logger.info(
                f"Fee rate changed from {old_fee_bps} to {fee_bps} bps",
                extra={"operation_type": "configuration"},
            )

    def set_open_bounds(self, minimum: int, maximum: int) -> None:
        self._check_open_bounds(minimum, maximum)
        with self.unit_of_work.atomic("set_open_bounds"):
            self.unit_of_work.track_attr(self, "_min_open_amount")
            self.unit_of_work.track_attr(self, "_max_open_amount")
            self._min_open_amount = minimum
            self._max_open_amount = maximum

    def set_min_sell_amount(self, minimum: int) -> None:
        validate_amount(minimum, field="min_sell_amount")
        with self.unit_of_work.atomic("set_min_sell_amount"):
            self.unit_of_work.track_attr(self, "_min_sell_amount")
            self._min_sell_amount = minimum

    # Position lifecycle

    def open(
        self, account: str, asset: str, amount: int, timestamp: datetime | None = None
    ) -> int:
        """Open a position at the asset's current price.

        The opened amount arrives with the call and is added to held value.

        Args:
            account: Owning account
            asset: Registered asset symbol
            amount: Principal in the smallest value unit
            timestamp: Entry time, defaults to now

        Returns:
            Index of the new position in the account's collection

        Raises:
            CircuitBreakerEngagedError: If the breaker is engaged
            UnsupportedAssetError: If the asset is not registered
            InvalidAmountError: If amount is outside the configured bounds
            PriceError: If the current price cannot be read
        """
        with self.unit_of_work.atomic("open_position"):
            self.circuit_breaker.ensure_disengaged("open_position")
            if not account:
                raise ValidationError("Account cannot be empty", field="account")
            self.registry.require_supported(asset)
            validate_amount(amount, self._min_open_amount, self._max_open_amount)

            price = self.registry.current_price(asset)

            if account not in self._positions:
                self.unit_of_work.track_key(self._positions, account)
                self._positions[account] = []
            positions = self._positions[account]

            position = Position(
                account=account,
                asset=asset,
                amount=amount,
                entry_price=price,
                index=len(positions),
                opened_at=timestamp or datetime.now(UTC),
            )
            self.unit_of_work.track_append(positions)
            positions.append(position)

            self._adjust_held(amount)
            self._adjust_invested(amount)

            self.unit_of_work.emit(
                PositionOpened(
                    account=account,
                    asset=asset,
                    amount=amount,
                    entry_price=price,
                    index=position.index,
                )
            )
            logger.info(
                f"Opened position {position.index} for {account}: {amount} {asset} @ {price}",
                extra={"operation_type": "open_position", "account": account, "asset": asset},
            )
            return position.index

    def close_by_index(self, account: str, index: int) -> ClosedPosition:
        """Fully close a position and pay out its settlement.

        Raises:
            CircuitBreakerEngagedError: If the breaker is engaged
            PositionNotFoundError: If the index does not exist
            PositionNotActiveError: If the position is already closed
            InsufficientLiquidityError: If held value cannot cover the payout
            TransferFailedError: If the payout transfer fails
        """
        with self.unit_of_work.atomic("close_position"):
            self.circuit_breaker.ensure_disengaged("close_position")
            position = self._active_position(account, index)
            price = self.registry.current_price(position.asset)
            return self._close(position, price)

    def close_best_by_asset(self, account: str, asset: str) -> ClosedPosition:
        """Close the account's most profitable active position in an asset.

        Candidates are scanned in index order and a later candidate only wins
        with a strictly greater PnL, so ties go to the lowest index.

        Raises:
            CircuitBreakerEngagedError: If the breaker is engaged
            NoActivePositionError: If there is no active position in the asset
        """
        with self.unit_of_work.atomic("close_best_position"):
            self.circuit_breaker.ensure_disengaged("close_best_position")
            candidates = [
                p for p in self._positions.get(account, []) if p.active and p.asset == asset
            ]
            if not candidates:
                raise NoActivePositionError(account, asset)

            price = self.registry.current_price(asset)
            best = candidates[0]
            best_pnl = compute_pnl(best.entry_price, price, best.amount)
            for position in candidates[1:]:
                pnl = compute_pnl(position.entry_price, price, position.amount)
                if pnl > best_pnl:
                    best, best_pnl = position, pnl

            return self._close(best, price)

    def _close(self, position: Position, price: int) -> ClosedPosition:
        """Settle and deactivate a position at an already validated price."""
        account, index = position.account, position.index
        pnl = compute_pnl(position.entry_price, price, position.amount)
        settlement = compute_settlement(pnl, position.amount, self._fee_bps)

        self.unit_of_work.track(position)
        position.deactivate()
        self._adjust_invested(-position.amount)
        self._disburse(account, settlement.payout, settlement.fee)

        self.unit_of_work.emit(
            PositionClosed(
                account=account,
                asset=position.asset,
                exit_price=price,
                realized_pnl=pnl,
                amount=position.amount,
                payout=settlement.payout,
                fee=settlement.fee,
                index=index,
            )
        )
        logger.info(
            f"Closed position {index} for {account}: pnl={pnl} payout={settlement.payout}",
            extra={
                "operation_type": "close_position",
                "account": account,
                "asset": position.asset,
            },
        )
        return ClosedPosition(
            account=account,
            asset=position.asset,
            index=index,
            amount=position.amount,
            exit_price=price,
            pnl=pnl,
            payout=settlement.payout,
            fee=settlement.fee,
        )

    def withdraw_profit_only(self, account: str, index: int) -> ProfitWithdrawal:
        """Pay out a position's profit net of fee and re-base it at the current price.

        The invested amount is untouched and the position stays active.

        Raises:
            CircuitBreakerEngagedError: If the breaker is engaged
            PositionNotFoundError: If the index does not exist
            PositionNotActiveError: If the position is closed
            NoProfitError: If the current PnL is not strictly positive
            InsufficientLiquidityError: If held value cannot cover the payout
            TransferFailedError: If the payout transfer fails
        """
        with self.unit_of_work.atomic("withdraw_profit"):
            self.circuit_breaker.ensure_disengaged("withdraw_profit")
            position = self._active_position(account, index)

            price = self.registry.current_price(position.asset)
            pnl = compute_pnl(position.entry_price, price, position.amount)
            if pnl <= 0:
                raise NoProfitError(account, index, pnl)

            settlement = compute_settlement(pnl, 0, self._fee_bps)

            self.unit_of_work.track(position)
            position.rebase(price)
            self._disburse(account, settlement.payout, settlement.fee)

            self.unit_of_work.emit(
                ProfitWithdrawn(
                    account=account,
                    amount=settlement.payout,
                    asset=position.asset,
                    index=index,
                    fee=settlement.fee,
                    new_entry_price=price,
                )
            )
            logger.info(
                f"Withdrew profit {settlement.payout} from position {index} of {account}",
                extra={
                    "operation_type": "withdraw_profit",
                    "account": account,
                    "asset": position.asset,
                },
            )
            return ProfitWithdrawal(
                account=account,
                asset=position.asset,
                index=index,
                pnl=pnl,
                payout=settlement.payout,
                fee=settlement.fee,
                new_entry_price=price,
            )

    def partial_sell(self, account: str, asset: str, target_amount: int) -> PartialSellResult:
        """Liquidate ``target_amount`` of an asset across the account's positions.

        See ``PartialSellAllocator.allocate``.
        """
        return self._allocator.allocate(account, asset, target_amount)

    # Held value

    def add_liquidity(self, source: str, amount: int) -> None:
        """Fund the held value used to pay out profits."""
        validate_amount(amount)
        with self.unit_of_work.atomic("add_liquidity"):
            self._adjust_held(amount)
            self.unit_of_work.emit(LiquidityAdded(source=source, amount=amount))
            logger.info(
                f"Added liquidity {amount} from {source}",
                extra={"operation_type": "liquidity", "account": source},
            )

    def sweep_excess(self, recipient: str, amount: int) -> None:
        """Send held value above the total active principal to a recipient.

        Raises:
            InsufficientBalanceError: If amount exceeds the excess
            TransferFailedError: If the transfer fails
        """
        validate_amount(amount)
        with self.unit_of_work.atomic("sweep_excess"):
            excess = self.excess_balance()
            if amount > excess:
                raise InsufficientBalanceError("excess", amount, excess)

            self._adjust_held(-amount)
            send_value(self._transfer, amount, recipient)

            self.unit_of_work.emit(ExcessSwept(recipient=recipient, amount=amount))
            logger.info(
                f"Swept {amount} of excess held value to {recipient}",
                extra={"operation_type": "sweep_excess", "account": recipient},
            )

    # Helpers shared with PartialSellAllocator

    def _positions_of(self, account: str) -> list[Position]:
        return self._positions.get(account, [])

    def _active_position(self, account: str, index: int) -> Position:
        positions = self._positions.get(account, [])
        if isinstance(index, bool) or not isinstance(index, int):
            raise PositionNotFoundError(account, index)
        if not 0 <= index < len(positions):
            raise PositionNotFoundError(account, index)

        position = positions[index]
        if not position.active:
            raise PositionNotActiveError(account, index)
        return position

    def _reduce_position(self, position: Position, amount: int) -> None:
        self.unit_of_work.track(position)
        position.reduce(amount)
        self._adjust_invested(-amount)

    def _disburse(self, recipient: str, payout: int, fee: int) -> None:
        """Debit held value for a payout, book the fee, then send the payout.

        Raises:
            InsufficientLiquidityError: If held value is below the payout
            TransferFailedError: If the transfer fails
        """
        if payout > self._held_balance:
            raise InsufficientLiquidityError(recipient, payout, self._held_balance)

        self._adjust_held(-payout)
        if fee:
            self.unit_of_work.track_attr(self, "_collected_fees")
            self._collected_fees += fee

        if payout > 0:
            send_value(self._transfer, payout, recipient)

    def _adjust_held(self, delta: int) -> None:
        self.unit_of_work.track_attr(self, "_held_balance")
        self._held_balance += delta

    def _adjust_invested(self, delta: int) -> None:
        self.unit_of_work.track_attr(self, "_total_invested")
        self._total_invested += delta

    # Queries

    def get_position(self, account: str, index: int) -> Position:
        with self.unit_of_work.reading():
            positions = self._positions.get(account, [])
            if not 0 <= index < len(positions):
                raise PositionNotFoundError(account, index)
            return copy.copy(positions[index])

    def get_positions(self, account: str) -> list[Position]:
        """All positions of an account in index order, closed ones included."""
        with self.unit_of_work.reading():
            return [copy.copy(p) for p in self._positions.get(account, [])]

    def get_active_positions(self, account: str, asset: str | None = None) -> list[Position]:
        with self.unit_of_work.reading():
            return [
                copy.copy(p)
                for p in self._positions.get(account, [])
                if p.active and (asset is None or p.asset == asset)
            ]

    def position_pnl(self, account: str, index: int) -> int:
        """Current unrealized PnL of an active position."""
        with self.unit_of_work.reading():
            position = self._active_position(account, index)
            price = self.registry.current_price(position.asset)
            return compute_pnl(position.entry_price, price, position.amount)

    def total_invested(self, account: str) -> int:
        with self.unit_of_work.reading():
            return sum(p.amount for p in self._positions.get(account, []) if p.active)

    def total_unrealized_pnl(self, account: str) -> int:
        prices: dict[str, int] = {}
        total = 0
        with self.unit_of_work.reading():
            for position in self._positions.get(account, []):
                if not position.active:
                    continue
                if position.asset not in prices:
                    prices[position.asset] = self.registry.current_price(position.asset)
                total += compute_pnl(
                    position.entry_price, prices[position.asset], position.amount
                )
        return total

    def held_balance(self) -> int:
        with self.unit_of_work.reading():
            return self._held_balance

    def collected_fees(self) -> int:
        with self.unit_of_work.reading():
            return self._collected_fees

    def total_invested_all(self) -> int:
        with self.unit_of_work.reading():
            return self._total_invested

    def excess_balance(self) -> int:
        """Held value not backing any active principal."""
        with self.unit_of_work.reading():
            return max(self._held_balance - self._total_invested, 0)
