"""
Partial-Sell Allocator - liquidates an amount of one asset across positions.

The allocator walks the account's positions in index order, skipping inactive
positions and other assets, and consumes each matching position up to the
amount still outstanding. Each consumed chunk is settled on its proportional
share of the position's PnL:

    chunk_pnl = position_pnl * chunk / position_amount   (truncating)

This is a second truncation on top of the one in ``compute_pnl``; the error is
bounded by one unit of value per chunk and always points toward zero.

The sell is all-or-nothing. If the matching positions run out before the
target is met, ``UnfilledSellError`` reports the remainder and every reduction
made during the scan is rolled back. On success the chunk payouts are summed
and sent to the account in a single transfer after all positions have been
updated, and a single ``PositionClosed`` event carries the aggregate PnL.
"""

# Standard library imports
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..events import PositionClosed
from ..exceptions_ledger import InvalidAmountError, UnfilledSellError
from ..value_objects import mul_div
from .pnl_calculator import compute_pnl
from .settlement_calculator import compute_settlement

if TYPE_CHECKING:
    from .position_ledger import PositionLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartialFill:
    """Settlement of one chunk taken from one position."""

    index: int
    amount: int
    pnl: int
    payout: int
    fee: int
    closed: bool


@dataclass(frozen=True)
class PartialSellResult:
    """Aggregate outcome of a partial sell."""

    account: str
    asset: str
    amount: int
    exit_price: int
    pnl: int
    payout: int
    fee: int
    fills: tuple[PartialFill, ...]


class PartialSellAllocator:
    """Allocates a sell target over an account's positions in one asset."""

    def __init__(self, ledger: "PositionLedger") -> None:
        self._ledger = ledger

    def allocate(self, account: str, asset: str, target_amount: int) -> PartialSellResult:
        """Sell ``target_amount`` of ``asset`` from the account's positions.

        Args:
            account: Selling account
            asset: Registered asset symbol
            target_amount: Principal to liquidate, at least the minimum sell unit

        Returns:
            PartialSellResult with the aggregate PnL, payout and per-position fills

        Raises:
            CircuitBreakerEngagedError: If the breaker is engaged
            InvalidAmountError: If target is not positive or below the minimum sell unit
            UnsupportedAssetError: If the asset is not registered
            UnfilledSellError: If active positions cannot cover the target
            InsufficientLiquidityError: If held value cannot cover the payout
            TransferFailedError: If the payout transfer fails
        """
        ledger = self._ledger
        uow = ledger.unit_of_work

        with uow.atomic("partial_sell"):
            ledger.circuit_breaker.ensure_disengaged("partial_sell")
            if isinstance(target_amount, bool) or not isinstance(target_amount, int):
                raise InvalidAmountError(target_amount, field="target_amount")
            if target_amount <= 0 or target_amount < ledger.min_sell_amount:
                raise InvalidAmountError(
                    target_amount, minimum=ledger.min_sell_amount, field="target_amount"
                )
            ledger.registry.require_supported(asset)

            price = ledger.registry.current_price(asset)
            fee_bps = ledger.fee_bps
            remaining = target_amount
            fills: list[PartialFill] = []

            for position in ledger._positions_of(account):
                if remaining == 0:
                    break
                if not position.active or position.asset != asset:
                    continue

                chunk = min(remaining, position.amount)
                position_pnl = compute_pnl(position.entry_price, price, position.amount)
                chunk_pnl = mul_div(position_pnl, chunk, position.amount)
                settlement = compute_settlement(chunk_pnl, chunk, fee_bps)

                ledger._reduce_position(position, chunk)
                fills.append(
                    PartialFill(
                        index=position.index,
                        amount=chunk,
                        pnl=chunk_pnl,
                        payout=settlement.payout,
                        fee=settlement.fee,
                        closed=not position.active,
                    )
                )
                remaining -= chunk

            if remaining > 0:
                raise UnfilledSellError(account, asset, target_amount, remaining)

            total_pnl = sum(fill.pnl for fill in fills)
            total_payout = sum(fill.payout for fill in fills)
            total_fee = sum(fill.fee for fill in fills)

            ledger._disburse(account, total_payout, total_fee)

            uow.emit(
                PositionClosed(
                    account=account,
                    asset=asset,
                    exit_price=price,
                    realized_pnl=total_pnl,
                    amount=target_amount,
                    payout=total_payout,
                    fee=total_fee,
                    partial=True,
                )
            )
            logger.info(
                f"Partial sell of {target_amount} {asset} for {account} "
                f"across {len(fills)} position(s): pnl={total_pnl} payout={total_payout}",
                extra={"operation_type": "partial_sell", "account": account, "asset": asset},
            )
            return PartialSellResult(
                account=account,
                asset=asset,
                amount=target_amount,
                exit_price=price,
                pnl=total_pnl,
                payout=total_payout,
                fee=total_fee,
                fills=tuple(fills),
            )
