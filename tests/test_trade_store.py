"""Tests for the append-only trade record store."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from trading.errors import StorageUnavailable
from trading.models.trade import TradeRecord, TradeSide


def _record(user_id: str, minutes: int, symbol: str = "BTC") -> TradeRecord:
    return TradeRecord(
        user_id=user_id,
        symbol=symbol,
        side=TradeSide.BUY,
        amount=Decimal("1"),
        price=Decimal("100"),
        value=Decimal("100"),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    )


class TestAppend:
    """Tests for TradeRecordStore.append."""

    def test_append_assigns_id(self, trade_store, account):
        stored = trade_store.append(_record(account.id, 0))

        assert stored.id is not None
        assert stored.user_id == account.id
        assert stored.value == Decimal("100")

    def test_append_failure_propagates(self, trade_store, account):
        """Test that storage errors are raised, not swallowed."""
        error = OperationalError("INSERT", {}, Exception("database is locked"))

        with patch.object(trade_store.db_session, "get_session", side_effect=error):
            with pytest.raises(StorageUnavailable):
                trade_store.append(_record(account.id, 0))


class TestListByUser:
    """Tests for TradeRecordStore.list_by_user."""

    def test_newest_first(self, trade_store, account):
        for minutes in (5, 1, 3):
            trade_store.append(_record(account.id, minutes))

        trades = trade_store.list_by_user(account.id)

        assert [t.created_at.minute for t in trades] == [5, 3, 1]

    def test_oldest_first(self, trade_store, account):
        for minutes in (5, 1, 3):
            trade_store.append(_record(account.id, minutes))

        trades = trade_store.list_by_user(account.id, newest_first=False)

        assert [t.created_at.minute for t in trades] == [1, 3, 5]

    def test_default_limit_is_fifty(self, trade_store, account):
        for minutes in range(55):
            trade_store.append(_record(account.id, minutes))

        trades = trade_store.list_by_user(account.id)

        assert len(trades) == 50
        assert trades[0].created_at.minute == 54

    def test_limit_capped_at_history_limit(self, trade_store, account):
        for minutes in range(55):
            trade_store.append(_record(account.id, minutes))

        assert len(trade_store.list_by_user(account.id, limit=500)) == 50
        assert len(trade_store.list_by_user(account.id, limit=10)) == 10

    def test_unlimited_for_statistics(self, trade_store, account):
        for minutes in range(55):
            trade_store.append(_record(account.id, minutes))

        assert len(trade_store.list_by_user(account.id, limit=None)) == 55

    def test_only_users_own_trades(self, ledger, trade_store, account):
        other = ledger.create_account("Other", "other@example.com", "h")
        trade_store.append(_record(account.id, 0))
        trade_store.append(_record(other.id, 1))

        trades = trade_store.list_by_user(account.id)

        assert len(trades) == 1
        assert trades[0].user_id == account.id

    def test_unknown_user_has_no_trades(self, trade_store):
        assert trade_store.list_by_user("nobody") == []

    def test_invalid_limit(self, trade_store, account):
        with pytest.raises(ValueError):
            trade_store.list_by_user(account.id, limit=0)

    def test_returned_timestamps_are_utc(self, trade_store, account):
        trade_store.append(_record(account.id, 0))

        trade = trade_store.list_by_user(account.id)[0]

        assert trade.created_at.tzinfo is not None
        assert trade.created_at.utcoffset() == timedelta(0)
