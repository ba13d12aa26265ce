"""Tests for the write path and repair-on-read orchestration."""

from datetime import datetime, timezone

import pytest

from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.services.balance import AccountNotFoundError
from journal.services.trade_repair import (
    delete_trade,
    needs_repair,
    reconcile_accounts,
    repair_trade,
    repair_trades,
    save_trade,
)

EXIT_TIME = datetime(2024, 1, 15, 14, 0, tzinfo=timezone.utc)


def _new_trade(user, account, **fields) -> Trade:
    values = {
        "user_id": user.id,
        "account_id": account.id,
        "currency_pair": "EURUSD",
        "direction": "buy",
        "entry_time": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        "entry_price": 1.1000,
        "position_size": 1.0,
    }
    values.update(fields)
    return Trade(**values)


@pytest.fixture
def second_account(session, user) -> TradingAccount:
    account = TradingAccount(
        user_id=user.id, account_name="Prop", initial_balance=500.0, current_balance=500.0,
    )
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


# ---------------------------------------------------------------------------
# 1. Repair on read
# ---------------------------------------------------------------------------

class TestNeedsRepair:
    def test_missing_metrics(self, make_trade):
        assert needs_repair(make_trade())

    def test_exit_data_on_open_trade(self, make_trade):
        assert needs_repair(make_trade(pips=10.0, profit_loss=25.0, status="open"))

    def test_consistent_trade(self, make_trade):
        assert not needs_repair(make_trade(pips=10.0, status="open"))


class TestRepairTrades:
    def test_closes_trade_and_reconciles(self, session, account, make_trade):
        trade = make_trade(
            status="open", exit_price=1.1050, exit_time=EXIT_TIME, profit_loss=50.0,
            stop_loss=1.0950, take_profit=1.1150,
        )

        report = repair_trades(session, [trade])

        assert report.repaired_trade_ids == [trade.id]
        assert report.balances_updated == 1
        assert trade.status == "closed"
        assert trade.pips == pytest.approx(50.0)
        assert trade.risk_reward_ratio == pytest.approx(3.0)
        session.refresh(account)
        assert account.current_balance == pytest.approx(10050.0)

    def test_stored_metric_is_not_overwritten_with_none(self, session, make_trade):
        trade = make_trade(status="open", profit_loss=30.0, pips=12.0)

        assert repair_trade(session, trade) is True
        assert trade.status == "closed"
        assert trade.pips == 12.0

    def test_unchanged_trade_is_not_written(self, session, make_trade):
        trade = make_trade(status="closed", exit_price=1.1050, exit_time=EXIT_TIME, profit_loss=50.0)
        assert repair_trade(session, trade) is True
        stamp = trade.updated_at

        assert repair_trade(session, trade) is False
        assert trade.updated_at == stamp

    def test_healthy_trades_skip_repair_but_extra_accounts_reconcile(
        self, session, account, make_trade,
    ):
        make_trade(status="closed", profit_loss=75.0, pips=5.0)
        healthy = make_trade(status="open", pips=1.0)

        report = repair_trades(session, [healthy], extra_account_ids=[account.id])

        assert report.repaired == 0
        assert report.balances_updated == 1
        session.refresh(account)
        assert account.current_balance == pytest.approx(10075.0)

    def test_reconcile_accounts_deduplicates(self, session, account):
        results = reconcile_accounts(session, [account.id, None, account.id])
        assert [r.account_id for r in results] == [account.id]

    def test_reconcile_accounts_unknown_id(self, session):
        with pytest.raises(AccountNotFoundError):
            reconcile_accounts(session, [987654])


# ---------------------------------------------------------------------------
# 2. Write path
# ---------------------------------------------------------------------------

class TestSaveTrade:
    def test_create_closed_trade_updates_balance(self, session, user, account):
        trade = _new_trade(
            user, account, status="open",
            exit_price=1.1150, exit_time=EXIT_TIME, profit_loss=150.0,
            stop_loss=1.0950, take_profit=1.1150,
        )

        results = save_trade(session, trade)

        assert trade.id is not None
        assert trade.status == "closed"
        assert trade.pips == pytest.approx(150.0)
        assert trade.r_multiple == pytest.approx(150.0 / 0.0050)
        assert results[0].new_balance == pytest.approx(10150.0)

    def test_open_trade_leaves_balance(self, session, user, account):
        trade = _new_trade(user, account, stop_loss=1.0950, take_profit=1.1150)
        results = save_trade(session, trade)

        assert trade.status == "open"
        assert trade.r_multiple == pytest.approx(3.0)
        assert results[0].updated is False

    def test_edit_replaces_all_metrics(self, session, user, account):
        trade = _new_trade(user, account, stop_loss=1.0950, take_profit=1.1150)
        save_trade(session, trade)
        assert trade.risk_amount == pytest.approx(0.0050)

        trade.stop_loss = None
        save_trade(session, trade)

        assert trade.risk_amount is None
        assert trade.risk_reward_ratio is None
        assert trade.r_multiple is None

    def test_moving_trade_reconciles_both_accounts(self, session, user, account, second_account):
        trade = _new_trade(user, account, exit_price=1.1100, exit_time=EXIT_TIME, profit_loss=100.0)
        save_trade(session, trade)
        session.refresh(account)
        assert account.current_balance == pytest.approx(10100.0)

        trade.account_id = second_account.id
        results = save_trade(session, trade, previous_account_id=account.id)

        assert {r.account_id for r in results} == {account.id, second_account.id}
        session.refresh(account)
        session.refresh(second_account)
        assert account.current_balance == pytest.approx(10000.0)
        assert second_account.current_balance == pytest.approx(600.0)

    def test_delete_removes_pnl_from_balance(self, session, user, account):
        trade = _new_trade(user, account, exit_price=1.0950, exit_time=EXIT_TIME, profit_loss=-50.0)
        save_trade(session, trade)
        session.refresh(account)
        assert account.current_balance == pytest.approx(9950.0)

        trade_id = trade.id
        results = delete_trade(session, trade)

        assert results[0].new_balance == pytest.approx(10000.0)
        assert session.get(Trade, trade_id) is None
