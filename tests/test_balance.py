"""Tests for account balance reconciliation."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from journal.models.trading_account import TradingAccount
from journal.services.balance import (
    AccountNotFoundError,
    closed_pnl_total,
    expected_balance,
    is_stale,
    reconcile_account,
    reconcile_balance,
)


# ---------------------------------------------------------------------------
# 1. Pure helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_expected_balance_counts_missing_as_zero(self):
        assert expected_balance(1000.0, [100.0, None, -25.0]) == pytest.approx(1075.0)

    def test_expected_balance_without_initial(self):
        assert expected_balance(None, []) == 0.0

    def test_is_stale_within_tolerance(self):
        assert is_stale(1000.0, 1000.005, tolerance=0.01) is False

    def test_is_stale_beyond_tolerance(self):
        assert is_stale(1000.0, 1000.02, tolerance=0.01) is True

    def test_is_stale_when_nothing_stored(self):
        assert is_stale(None, 0.0) is True
        assert is_stale(None, 500.0) is True


# ---------------------------------------------------------------------------
# 2. Reconciliation against the database
# ---------------------------------------------------------------------------

class TestReconcile:
    def test_sums_only_closed_trades(self, session, account, make_trade):
        make_trade(status="closed", profit_loss=150.0)
        make_trade(status="closed", profit_loss=-50.0)
        make_trade(status="open", profit_loss=999.0)

        assert closed_pnl_total(session, account.id) == pytest.approx(100.0)
        assert reconcile_balance(session, account.id) == pytest.approx(10100.0)
        session.refresh(account)
        assert account.current_balance == pytest.approx(10100.0)

    def test_closed_trade_without_pnl_counts_as_zero(self, session, account, make_trade):
        make_trade(status="closed", profit_loss=None)
        make_trade(status="closed", profit_loss=40.0)
        assert reconcile_balance(session, account.id) == pytest.approx(10040.0)

    def test_no_trades_returns_initial_balance(self, session, account):
        result = reconcile_account(session, account)
        assert result.new_balance == pytest.approx(10000.0)
        assert result.updated is False

    def test_second_call_does_not_write(self, session, account, make_trade):
        make_trade(status="closed", profit_loss=150.0)

        first = reconcile_account(session, account)
        second = reconcile_account(session, account)

        assert first.updated is True
        assert first.previous_balance == pytest.approx(10000.0)
        assert second.updated is False
        assert second.new_balance == pytest.approx(10150.0)

    def test_drift_within_tolerance_is_left_alone(self, session, account, make_trade):
        make_trade(status="closed", profit_loss=0.004)
        result = reconcile_account(session, account)
        assert result.updated is False
        session.refresh(account)
        assert account.current_balance == pytest.approx(10000.0)

    def test_missing_stored_balance_is_written(self, session, account):
        account.current_balance = None
        session.add(account)
        session.commit()

        result = reconcile_account(session, account)
        assert result.updated is True
        assert account.current_balance == pytest.approx(10000.0)

    def test_missing_stored_balance_on_empty_account(self, session, user):
        account = TradingAccount(user_id=user.id, account_name="Fresh", initial_balance=0.0, current_balance=None)
        session.add(account)
        session.commit()
        session.refresh(account)

        result = reconcile_account(session, account)

        assert result.updated is True
        assert result.new_balance == 0.0
        session.refresh(account)
        assert account.current_balance == 0.0

    def test_unknown_account(self, session):
        with pytest.raises(AccountNotFoundError):
            reconcile_balance(session, 424242)

    def test_store_errors_propagate(self):
        session = MagicMock()
        session.exec.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        account = MagicMock(id=1, initial_balance=100.0, current_balance=100.0)

        with pytest.raises(OperationalError):
            reconcile_account(session, account)
        session.commit.assert_not_called()
