"""Tests for open/closed status inference."""

from datetime import datetime, timezone
from types import SimpleNamespace

from journal.services.trade_status import TradeStatus, has_exit_evidence, infer_status


def _row(**fields):
    values = {"status": "open", "exit_time": None, "exit_price": None, "profit_loss": None}
    values.update(fields)
    return SimpleNamespace(**values)


class TestExitEvidence:
    def test_no_evidence(self):
        assert has_exit_evidence(_row()) is False

    def test_exit_time(self):
        assert has_exit_evidence(_row(exit_time=datetime(2024, 1, 15, tzinfo=timezone.utc)))

    def test_exit_price(self):
        assert has_exit_evidence(_row(exit_price=1.1050))

    def test_zero_exit_price_is_not_evidence(self):
        assert has_exit_evidence(_row(exit_price=0.0)) is False

    def test_zero_profit_loss_is_evidence(self):
        assert has_exit_evidence(_row(profit_loss=0.0))


class TestInferStatus:
    def test_open_without_evidence(self):
        assert infer_status(_row()) is TradeStatus.OPEN

    def test_evidence_overrides_explicit_open(self):
        assert infer_status(_row(status="open", profit_loss=-25.0)) is TradeStatus.CLOSED

    def test_closed_is_never_reopened(self):
        assert infer_status(_row(status="closed")) is TradeStatus.CLOSED

    def test_unknown_status_becomes_open(self):
        assert infer_status(_row(status="pending")) is TradeStatus.OPEN

    def test_missing_attributes(self):
        assert infer_status(SimpleNamespace()) is TradeStatus.OPEN

    def test_enum_compares_to_stored_string(self):
        assert TradeStatus.CLOSED == "closed"
