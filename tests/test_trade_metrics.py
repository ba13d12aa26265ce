"""Tests for the stateless trade metrics engine."""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from journal.services.trade_metrics import (
    TradeInput,
    TradeMetrics,
    compute_metrics,
    pip_size,
    risk_percentage,
)

EXIT_TIME = datetime(2024, 1, 15, 14, 0, tzinfo=timezone.utc)


def _trade(**fields) -> TradeInput:
    values = {
        "entry_price": 1.1000,
        "direction": "buy",
        "currency_pair": "EURUSD",
        "position_size": 1.0,
    }
    values.update(fields)
    return TradeInput(**values)


# ---------------------------------------------------------------------------
# 1. Pips
# ---------------------------------------------------------------------------

class TestPips:
    def test_buy_eurusd(self):
        metrics = compute_metrics(_trade(exit_price=1.1050))
        assert metrics.pips == pytest.approx(50.0)

    def test_sell_usdjpy_uses_jpy_pip_size(self):
        metrics = compute_metrics(_trade(
            direction="sell", currency_pair="USDJPY", entry_price=150.00, exit_price=149.50,
        ))
        assert metrics.pips == pytest.approx(50.0)

    def test_losing_buy_is_negative(self):
        metrics = compute_metrics(_trade(exit_price=1.0980))
        assert metrics.pips == pytest.approx(-20.0)

    def test_missing_exit_price(self):
        assert compute_metrics(_trade()).pips is None

    def test_missing_pair(self):
        assert compute_metrics(_trade(exit_price=1.1050, currency_pair="")).pips is None

    def test_pip_size_is_case_insensitive(self):
        assert pip_size("gbpjpy") == 0.01
        assert pip_size("EURUSD") == 0.0001


# ---------------------------------------------------------------------------
# 2. Risk:reward and R-multiple
# ---------------------------------------------------------------------------

class TestRiskReward:
    def test_buy_planned_ratio(self):
        metrics = compute_metrics(_trade(stop_loss=1.0950, take_profit=1.1150))
        assert metrics.risk_reward_ratio == pytest.approx(3.0)

    def test_open_trade_r_multiple_is_planned_ratio(self):
        metrics = compute_metrics(_trade(stop_loss=1.0950, take_profit=1.1150))
        assert metrics.r_multiple == metrics.risk_reward_ratio

    def test_sell_planned_ratio(self):
        metrics = compute_metrics(_trade(
            direction="sell", entry_price=1.2000, stop_loss=1.2100, take_profit=1.1700,
        ))
        assert metrics.risk_reward_ratio == pytest.approx(3.0)

    def test_closed_trade_uses_realized_pnl(self):
        metrics = compute_metrics(_trade(
            stop_loss=1.0950, take_profit=1.1150,
            exit_price=1.1150, exit_time=EXIT_TIME, profit_loss=150.0, position_size=1.0,
        ))
        assert metrics.r_multiple == pytest.approx(150.0 / (0.0050 * 1.0))
        assert metrics.r_multiple != pytest.approx(metrics.risk_reward_ratio)

    def test_closed_trade_scales_by_position_size(self):
        metrics = compute_metrics(_trade(
            stop_loss=1.0950, take_profit=1.1150,
            exit_price=1.1150, exit_time=EXIT_TIME, profit_loss=150.0, position_size=2.0,
        ))
        assert metrics.r_multiple == pytest.approx(150.0 / (0.0050 * 2.0))

    def test_missing_exit_time_keeps_planned_ratio(self):
        metrics = compute_metrics(_trade(
            stop_loss=1.0950, take_profit=1.1150, exit_price=1.1150, profit_loss=150.0,
        ))
        assert metrics.r_multiple == metrics.risk_reward_ratio

    def test_zero_position_size_falls_back_to_planned_ratio(self):
        metrics = compute_metrics(_trade(
            stop_loss=1.0950, take_profit=1.1150,
            exit_price=1.1150, exit_time=EXIT_TIME, profit_loss=150.0, position_size=0.0,
        ))
        assert metrics.r_multiple == metrics.risk_reward_ratio

    def test_target_on_losing_side_gives_negative_ratio(self):
        metrics = compute_metrics(_trade(stop_loss=1.0900, take_profit=1.0950))
        assert metrics.risk_reward_ratio == pytest.approx(-0.5)

    def test_missing_take_profit(self):
        metrics = compute_metrics(_trade(stop_loss=1.0950))
        assert metrics.risk_reward_ratio is None
        assert metrics.r_multiple is None


# ---------------------------------------------------------------------------
# 3. Risk amount and invalid stops
# ---------------------------------------------------------------------------

class TestRiskAmount:
    def test_buy_risk_amount(self):
        metrics = compute_metrics(_trade(stop_loss=1.0950, position_size=2.0))
        assert metrics.risk_amount == pytest.approx(0.0100)

    def test_sell_risk_amount(self):
        metrics = compute_metrics(_trade(direction="sell", entry_price=1.2000, stop_loss=1.2100))
        assert metrics.risk_amount == pytest.approx(0.0100)

    def test_stop_on_wrong_side_nulls_risk_fields_only(self):
        metrics = compute_metrics(_trade(
            stop_loss=1.1050, take_profit=1.1150, exit_price=1.1050,
        ))
        assert metrics.risk_reward_ratio is None
        assert metrics.r_multiple is None
        assert metrics.risk_amount is None
        assert metrics.pips == pytest.approx(50.0)

    def test_zero_width_stop(self):
        metrics = compute_metrics(_trade(stop_loss=1.1000, take_profit=1.1150))
        assert metrics == TradeMetrics(pips=None, risk_reward_ratio=None, r_multiple=None, risk_amount=None)

    def test_zero_stop_means_unset(self):
        metrics = compute_metrics(_trade(stop_loss=0.0, take_profit=1.1150))
        assert metrics.risk_amount is None
        assert metrics.risk_reward_ratio is None


# ---------------------------------------------------------------------------
# 4. Engine contract
# ---------------------------------------------------------------------------

class TestContract:
    def test_empty_input_never_raises(self):
        metrics = compute_metrics(TradeInput(
            entry_price=None, direction="buy", currency_pair=None, position_size=None,
        ))
        assert metrics.as_dict() == {
            "pips": None, "risk_reward_ratio": None, "r_multiple": None, "risk_amount": None,
        }

    def test_idempotent(self):
        trade = _trade(
            stop_loss=1.0950, take_profit=1.1150,
            exit_price=1.1120, exit_time=EXIT_TIME, profit_loss=120.0,
        )
        assert compute_metrics(trade) == compute_metrics(trade)
        assert compute_metrics(trade).as_dict() == compute_metrics(trade).as_dict()

    def test_from_record_reads_attributes(self):
        record = SimpleNamespace(
            entry_price=1.1000, exit_price=1.1050, stop_loss=None, take_profit=None,
            direction="buy", currency_pair="EURUSD", position_size=1.0,
            profit_loss=None, exit_time=None,
        )
        trade = TradeInput.from_record(record, current_balance=5000.0)
        assert trade.current_balance == 5000.0
        assert compute_metrics(trade).pips == pytest.approx(50.0)

    def test_risk_percentage(self):
        assert risk_percentage(100.0, 10000.0) == pytest.approx(1.0)
        assert risk_percentage(None, 10000.0) is None
        assert risk_percentage(100.0, 0.0) is None
        assert risk_percentage(100.0, None) is None
