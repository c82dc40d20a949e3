"""
Unit tests for the CopyTradingDelegate
"""

import threading

import pytest

from src.domain.events import (
    CopySellExecuted,
    FundsDeposited,
    FundsWithdrawn,
    TradeCopied,
    TraderFollowed,
    TraderUnfollowed,
)
from src.domain.exceptions import StateError, ValidationError
from src.domain.exceptions_ledger import (
    CircuitBreakerEngagedError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidPercentageError,
    NotFollowingError,
    SelfFollowError,
    TransferFailedError,
    UnauthorizedCallerError,
    UnsupportedAssetError,
)
from tests.helpers import ADMIN, BOT


@pytest.fixture
def following(delegate, event_log):
    """Follower with a pooled balance of 10 following the trader at 50%."""
    delegate.deposit("follower", 10)
    delegate.follow("follower", "trader", 50)
    return delegate


class TestSelfService:
    """Test suite for follower-driven operations"""

    def test_deposit(self, delegate, event_log):
        """Test crediting the pooled balance"""
        delegate.deposit("follower", 10)
        delegate.deposit("follower", 5)

        assert delegate.pooled_balance("follower") == 15
        assert len(event_log.of_type(FundsDeposited)) == 2

    @pytest.mark.parametrize("amount", [0, -1])
    def test_deposit_requires_positive_amount(self, delegate, amount):
        """Test deposit validation"""
        with pytest.raises(InvalidAmountError):
            delegate.deposit("follower", amount)

    def test_follow(self, following, event_log):
        """Test creating an active relationship"""
        assert following.is_following("follower", "trader")
        relationship = following.get_relationship("follower", "trader")
        assert relationship.percentage == 50

        event = event_log.of_type(TraderFollowed)[0]
        assert (event.follower, event.trader, event.percentage) == ("follower", "trader", 50)

    def test_follow_again_reweights(self, following):
        """Test that following an already followed trader updates the percentage"""
        following.follow("follower", "trader", 20)
        assert following.get_relationship("follower", "trader").percentage == 20
        assert following.following_count("follower") == 1

    @pytest.mark.parametrize("percentage", [0, 101])
    def test_follow_rejects_invalid_percentage(self, delegate, percentage):
        """Test percentage bounds"""
        delegate.deposit("follower", 10)
        with pytest.raises(InvalidPercentageError):
            delegate.follow("follower", "trader", percentage)
        assert not delegate.is_following("follower", "trader")

    def test_follow_self(self, delegate):
        """Test that an account cannot follow itself"""
        delegate.deposit("follower", 10)
        with pytest.raises(SelfFollowError) as exc_info:
            delegate.follow("follower", "follower", 50)
        assert isinstance(exc_info.value, ValidationError)

    def test_follow_requires_pooled_balance(self, delegate):
        """Test that an empty pooled balance cannot follow"""
        with pytest.raises(InsufficientBalanceError):
            delegate.follow("follower", "trader", 50)
        assert delegate.get_relationship("follower", "trader") is None

    def test_unfollow(self, following, event_log):
        """Test that unfollowing clears both flag and percentage"""
        following.unfollow("follower", "trader")

        relationship = following.get_relationship("follower", "trader")
        assert not relationship.active
        assert relationship.percentage == 0
        assert len(event_log.of_type(TraderUnfollowed)) == 1

    def test_unfollow_without_relationship(self, delegate, event_log):
        """Test that unfollow has no precondition"""
        delegate.unfollow("follower", "stranger")
        assert not delegate.is_following("follower", "stranger")
        assert len(event_log.of_type(TraderUnfollowed)) == 1

    def test_withdraw_funds(self, delegate, transfer, event_log):
        """Test withdrawing from the pooled balance"""
        delegate.deposit("follower", 10)
        delegate.withdraw_funds("follower", 4)

        assert delegate.pooled_balance("follower") == 6
        assert transfer.balance_of("follower") == 4
        assert event_log.of_type(FundsWithdrawn)[0].amount == 4

    def test_withdraw_more_than_pooled(self, delegate):
        """Test that withdrawals are bounded by the pooled balance"""
        delegate.deposit("follower", 10)
        with pytest.raises(InsufficientBalanceError):
            delegate.withdraw_funds("follower", 11)
        assert delegate.pooled_balance("follower") == 10

    def test_failed_withdrawal_restores_balance(self, delegate, transfer):
        """Test that a rejected transfer undoes the debit"""
        delegate.deposit("follower", 10)
        transfer.reject_all()

        with pytest.raises(TransferFailedError):
            delegate.withdraw_funds("follower", 4)
        assert delegate.pooled_balance("follower") == 10


class TestExecuteCopyTrade:
    """Test suite for mirrored opens"""

    def test_copy_trade_scales_by_percentage(self, following, ledger, event_log):
        """Test that 50% of a 10 trade opens 5 for the follower"""
        result = following.execute_copy_trade(BOT, "follower", "trader", "Y", 10)

        assert result.amount == 5
        assert following.pooled_balance("follower") == 5
        assert following.vault_position("follower", "Y") == 5

        position = ledger.get_position("follower", result.position_index)
        assert position.asset == "Y"
        assert position.amount == 5

        event = event_log.of_type(TradeCopied)[0]
        assert (event.follower, event.trader, event.asset, event.amount) == (
            "follower",
            "trader",
            "Y",
            5,
        )

    def test_insufficient_pooled_balance(self, delegate, ledger):
        """Test that a copy larger than the pooled balance leaves it untouched"""
        delegate.deposit("follower", 4)
        delegate.follow("follower", "trader", 50)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            delegate.execute_copy_trade(BOT, "follower", "trader", "Y", 10)

        assert isinstance(exc_info.value, StateError)
        assert delegate.pooled_balance("follower") == 4
        assert delegate.vault_position("follower", "Y") == 0
        assert ledger.get_positions("follower") == []

    def test_failed_open_leaves_no_partial_debit(self, following, ledger):
        """Test that a ledger failure aborts the whole copy"""
        with pytest.raises(UnsupportedAssetError):
            following.execute_copy_trade(BOT, "follower", "trader", "Z", 10)

        assert following.pooled_balance("follower") == 10
        assert following.vault_position("follower", "Z") == 0
        assert ledger.held_balance() == 0

    def test_open_bounds_apply_to_copy_amount(self, following, ledger):
        """Test that the scaled amount is validated by the ledger"""
        ledger.set_open_bounds(6, 100)

        with pytest.raises(InvalidAmountError):
            following.execute_copy_trade(BOT, "follower", "trader", "Y", 10)
        assert following.pooled_balance("follower") == 10

    @pytest.mark.parametrize("caller", [ADMIN, "follower", "trader"])
    def test_unauthorized_caller(self, following, caller):
        """Test that only the automation role may copy"""
        with pytest.raises(UnauthorizedCallerError):
            following.execute_copy_trade(caller, "follower", "trader", "Y", 10)
        assert following.pooled_balance("follower") == 10

    def test_not_following(self, following):
        """Test copying for a trader the follower does not follow"""
        with pytest.raises(NotFollowingError):
            following.execute_copy_trade(BOT, "follower", "someone-else", "Y", 10)

    def test_after_unfollow(self, following):
        """Test that unfollowed relationships cannot be copied"""
        following.unfollow("follower", "trader")
        with pytest.raises(NotFollowingError):
            following.execute_copy_trade(BOT, "follower", "trader", "Y", 10)


class TestExecuteCopySell:
    """Test suite for mirrored sells"""

    @pytest.fixture
    def invested(self, following):
        following.execute_copy_trade(BOT, "follower", "trader", "Y", 10)
        return following

    def test_copy_sell_releases_share_of_vault(self, invested, ledger, transfer, event_log):
        """Test that 40% of a vault of 5 sells 2 and pays the follower"""
        result = invested.execute_copy_sell(BOT, "follower", "trader", "Y", 40)

        assert result.amount == 2
        assert invested.vault_position("follower", "Y") == 3
        assert ledger.total_invested("follower") == 3
        assert transfer.balance_of("follower") == 2

        event = event_log.of_type(CopySellExecuted)[0]
        assert (event.amount, event.realized_pnl) == (2, 0)

    def test_vault_reduced_before_ledger_sell(self, invested, transfer):
        """Test that the payout transfer observes the reduced vault entry"""
        observed = []
        transfer.set_hook(
            lambda amount, recipient: observed.append(invested.vault_position("follower", "Y"))
        )

        invested.execute_copy_sell(BOT, "follower", "trader", "Y", 100)

        assert observed == [0]

    def test_failed_sell_restores_vault(self, invested, ledger):
        """Test that a ledger failure undoes the vault reduction"""
        ledger.set_min_sell_amount(3)

        with pytest.raises(InvalidAmountError):
            invested.execute_copy_sell(BOT, "follower", "trader", "Y", 40)

        assert invested.vault_position("follower", "Y") == 5
        assert ledger.total_invested("follower") == 5

    def test_zero_sell_amount_fails(self, invested):
        """Test that a percentage rounding to nothing fails in the ledger"""
        with pytest.raises(InvalidAmountError):
            invested.execute_copy_sell(BOT, "follower", "trader", "Y", 1)
        assert invested.vault_position("follower", "Y") == 5

    @pytest.mark.parametrize("percentage", [0, 101])
    def test_invalid_sell_percentage(self, invested, percentage):
        """Test sell percentage bounds"""
        with pytest.raises(InvalidPercentageError):
            invested.execute_copy_sell(BOT, "follower", "trader", "Y", percentage)

    def test_empty_vault(self, following):
        """Test selling an asset never copied"""
        with pytest.raises(InsufficientBalanceError):
            following.execute_copy_sell(BOT, "follower", "trader", "Y", 50)

    def test_unauthorized_caller(self, invested):
        """Test that only the automation role may sell"""
        with pytest.raises(UnauthorizedCallerError):
            invested.execute_copy_sell("mallory", "follower", "trader", "Y", 50)
        assert invested.vault_position("follower", "Y") == 5


class TestQueries:
    """Test suite for copy-trading queries"""

    def test_following_and_follower_counts(self, delegate):
        """Test real relationship counts"""
        delegate.deposit("f1", 10)
        delegate.deposit("f2", 10)
        delegate.follow("f1", "t1", 10)
        delegate.follow("f1", "t2", 10)
        delegate.follow("f2", "t1", 10)
        delegate.unfollow("f1", "t2")

        assert delegate.following_count("f1") == 1
        assert delegate.following_count("f2") == 1
        assert delegate.follower_count("t1") == 2
        assert delegate.follower_count("t2") == 0

    def test_summary(self, following):
        """Test the per-account copy-trading view"""
        following.execute_copy_trade(BOT, "follower", "trader", "Y", 10)
        summary = following.summary("follower")

        assert summary.pooled_balance == 5
        assert summary.following_count == 1
        assert summary.follower_count == 0
        assert summary.vault_positions == {"Y": 5}

    def test_get_relationship_returns_copy(self, following):
        """Test that callers cannot mutate the relationship store"""
        relationship = following.get_relationship("follower", "trader")
        relationship.deactivate()
        assert following.is_following("follower", "trader")

    def test_pooled_balance_waits_for_in_flight_withdrawal(self, delegate, transfer):
        """Test that another thread never reads a debit that later rolls back"""
        delegate.deposit("follower", 10)
        entered = threading.Event()
        release = threading.Event()
        seen = []

        def hook(amount, recipient):
            entered.set()
            release.wait(timeout=5)
            raise RuntimeError("recipient reverted")

        def withdraw():
            with pytest.raises(TransferFailedError):
                delegate.withdraw_funds("follower", 4)

        transfer.set_hook(hook)
        withdraw_thread = threading.Thread(target=withdraw)
        withdraw_thread.start()
        assert entered.wait(timeout=5)

        reader_thread = threading.Thread(
            target=lambda: seen.append(delegate.pooled_balance("follower"))
        )
        reader_thread.start()
        reader_thread.join(timeout=0.2)
        assert reader_thread.is_alive()

        release.set()
        withdraw_thread.join(timeout=5)
        reader_thread.join(timeout=5)

        assert seen == [10]


class TestCircuitBreakerGate:
    """Test suite for the circuit breaker on copy-trading operations"""

    @pytest.mark.parametrize(
        "operation",
        [
            lambda d: d.deposit("follower", 1),
            lambda d: d.follow("follower", "other", 10),
            lambda d: d.unfollow("follower", "trader"),
            lambda d: d.withdraw_funds("follower", 1),
            lambda d: d.execute_copy_trade(BOT, "follower", "trader", "Y", 10),
            lambda d: d.execute_copy_sell(BOT, "follower", "trader", "Y", 50),
        ],
    )
    def test_mutations_blocked(self, following, breaker, operation):
        """Test that every mutating operation is rejected while engaged"""
        breaker.engage()

        with pytest.raises(CircuitBreakerEngagedError):
            operation(following)

        assert following.pooled_balance("follower") == 10
        assert following.is_following("follower", "trader")

    def test_queries_still_work(self, following, breaker):
        """Test that reads are not gated"""
        breaker.engage()
        assert following.summary("follower").pooled_balance == 10
