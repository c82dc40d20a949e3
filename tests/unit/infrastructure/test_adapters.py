"""
Unit tests for the in-memory infrastructure adapters.
"""

import pytest

from src.domain.events import FundsDeposited, TraderFollowed
from src.domain.exceptions import PriceError
from src.domain.interfaces import IPriceSource, IValueTransfer
from src.infrastructure.audit import InMemoryEventLog
from src.infrastructure.price_sources import StaticPriceFeed
from src.infrastructure.transfers import InMemoryValueTransfer
from tests.helpers import price


class TestStaticPriceFeed:
    """Test suite for the settable price feed"""

    def test_satisfies_price_source_protocol(self):
        """Test structural typing against the price source interface"""
        assert isinstance(StaticPriceFeed(), IPriceSource)

    def test_set_and_read(self):
        """Test price updates"""
        feed = StaticPriceFeed({"X": price(1)}, source_id="desk")
        feed.set_price("X", price(2))

        assert feed.source_id == "desk"
        assert feed.current_price("X") == price(2)

    def test_missing_asset(self):
        """Test reading an asset the feed does not quote"""
        feed = StaticPriceFeed({"X": price(1)})
        feed.remove_price("X")

        with pytest.raises(PriceError, match="No price for X"):
            feed.current_price("X")

    def test_failure_mode(self):
        """Test forced failures and recovery"""
        feed = StaticPriceFeed({"X": price(1)})
        feed.fail_with("maintenance")

        with pytest.raises(PriceError, match="maintenance"):
            feed.current_price("X")

        feed.fail_with(None)
        assert feed.current_price("X") == price(1)

    def test_initial_prices_copied(self):
        """Test that the constructor does not alias the caller's dict"""
        prices = {"X": price(1)}
        feed = StaticPriceFeed(prices)
        prices["X"] = price(9)
        assert feed.current_price("X") == price(1)


class TestInMemoryValueTransfer:
    """Test suite for the in-memory value transfer"""

    def test_satisfies_value_transfer_protocol(self):
        """Test structural typing against the transfer interface"""
        assert isinstance(InMemoryValueTransfer(), IValueTransfer)

    def test_send_books_balances(self):
        """Test balances and the transfer record"""
        transfer = InMemoryValueTransfer()

        assert transfer.send(3, "alice")
        assert transfer.send(4, "alice")
        assert transfer.send(1, "bob")

        assert transfer.balance_of("alice") == 7
        assert transfer.transfers == [("alice", 3), ("alice", 4), ("bob", 1)]
        assert transfer.total_sent() == 8

    def test_rejections(self):
        """Test per-recipient and global rejection"""
        transfer = InMemoryValueTransfer()
        transfer.reject_recipient("bob")

        assert not transfer.send(1, "bob")
        assert transfer.send(1, "alice")

        transfer.reject_all()
        assert not transfer.send(1, "alice")
        transfer.reject_all(False)
        assert transfer.send(1, "alice")

        assert transfer.balance_of("bob") == 0
        assert transfer.balance_of("alice") == 2

    def test_raise_on_send(self):
        """Test injected transfer errors"""
        transfer = InMemoryValueTransfer()
        transfer.raise_on_send(ConnectionError("rail down"))

        with pytest.raises(ConnectionError):
            transfer.send(1, "alice")
        assert transfer.transfers == []

    def test_hook_runs_before_booking(self):
        """Test that the hook observes the state before the credit"""
        transfer = InMemoryValueTransfer()
        seen = []
        transfer.set_hook(lambda amount, recipient: seen.append(transfer.balance_of(recipient)))

        transfer.send(5, "alice")
        transfer.send(5, "alice")

        assert seen == [0, 5]


class TestInMemoryEventLog:
    """Test suite for the event log"""

    def test_records_only_committed_events(self, uow):
        """Test that events of a rolled-back block never reach the log"""
        log = InMemoryEventLog(uow.event_bus)

        with uow.atomic("deposit"):
            uow.emit(FundsDeposited(account="alice", amount=1))

        with pytest.raises(RuntimeError):
            with uow.atomic("follow"):
                uow.emit(TraderFollowed(follower="alice", trader="bob", percentage=10))
                raise RuntimeError("abort")

        assert len(log) == 1
        assert log.of_type(TraderFollowed) == []
        assert log.to_dicts()[0]["event_type"] == "FundsDeposited"

    def test_clear(self):
        """Test manual recording and clearing"""
        log = InMemoryEventLog()
        log.record(FundsDeposited(account="alice", amount=1))
        assert len(log.events) == 1

        log.clear()
        assert len(log) == 0
