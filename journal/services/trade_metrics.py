"""Stateless trade metrics computation.

Turns the raw fields of one trade (prices, stop, target, side, size, P&L)
into the four derived analytics fields. All functions are pure computation:
no I/O, no database access, and no exceptions for incomplete input. A
sub-calculation whose inputs are missing or inconsistent yields None for its
own field and leaves the others alone.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from journal.utils.constants import DEFAULT_PIP_SIZE, JPY_PIP_SIZE


@dataclass(frozen=True)
class TradeInput:
    """Snapshot of the raw trade fields the engine reads."""

    entry_price: float | None
    direction: str
    currency_pair: str | None
    position_size: float | None
    exit_price: float | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    profit_loss: float | None = None
    exit_time: datetime | None = None
    current_balance: float | None = None  # account context, not used by the formulas

    @classmethod
    def from_record(cls, record: Any, current_balance: float | None = None) -> "TradeInput":
        """Build an input from any object exposing trade attributes (model row, schema, CSV row)."""
        return cls(
            entry_price=getattr(record, "entry_price", None),
            direction=getattr(record, "direction", "buy") or "buy",
            currency_pair=getattr(record, "currency_pair", None),
            position_size=getattr(record, "position_size", None),
            exit_price=getattr(record, "exit_price", None),
            stop_loss=getattr(record, "stop_loss", None),
            take_profit=getattr(record, "take_profit", None),
            profit_loss=getattr(record, "profit_loss", None),
            exit_time=getattr(record, "exit_time", None),
            current_balance=current_balance,
        )

    @property
    def is_buy(self) -> bool:
        return self.direction.strip().lower() == "buy"


@dataclass(frozen=True)
class TradeMetrics:
    pips: float | None = None
    risk_reward_ratio: float | None = None
    r_multiple: float | None = None
    risk_amount: float | None = None

    def as_dict(self) -> dict[str, float | None]:
        return asdict(self)


METRIC_FIELDS = ("pips", "risk_reward_ratio", "r_multiple", "risk_amount")


def _is_set(price: float | None) -> bool:
    # Brokers export 0 for an unset level; a zero price is never a real level.
    return price is not None and price != 0


def pip_size(currency_pair: str) -> float:
    """Pip size for a pair: 0.01 for JPY crosses, 0.0001 otherwise."""
    return JPY_PIP_SIZE if "JPY" in currency_pair.upper() else DEFAULT_PIP_SIZE


def compute_pips(trade: TradeInput) -> float | None:
    if not (_is_set(trade.entry_price) and _is_set(trade.exit_price) and trade.currency_pair):
        return None
    size = pip_size(trade.currency_pair)
    if trade.is_buy:
        return (trade.exit_price - trade.entry_price) / size
    return (trade.entry_price - trade.exit_price) / size


def _risk_per_unit(trade: TradeInput) -> float:
    if trade.is_buy:
        return trade.entry_price - trade.stop_loss
    return trade.stop_loss - trade.entry_price


def _reward_per_unit(trade: TradeInput) -> float:
    if trade.is_buy:
        return trade.take_profit - trade.entry_price
    return trade.entry_price - trade.take_profit


def _is_closed(trade: TradeInput) -> bool:
    return (
        _is_set(trade.exit_price)
        and trade.exit_time is not None
        and trade.profit_loss is not None
    )


def compute_risk_reward(trade: TradeInput) -> tuple[float | None, float | None]:
    """Planned risk:reward ratio and R-multiple.

    Returns: (risk_reward_ratio, r_multiple)

    The R-multiple is realized (P&L over currency risk) once the trade is
    closed, and falls back to the planned ratio while it is open.
    """
    if not (_is_set(trade.stop_loss) and _is_set(trade.take_profit) and _is_set(trade.entry_price)):
        return None, None

    risk = _risk_per_unit(trade)
    if risk <= 0:
        # Stop on the wrong side of entry or zero-width: no risk signal
        return None, None

    ratio = _reward_per_unit(trade) / risk

    if _is_closed(trade):
        actual_risk = abs(risk) * (trade.position_size or 0.0)
        if actual_risk > 0:
            return ratio, trade.profit_loss / actual_risk
    return ratio, ratio


def compute_risk_amount(trade: TradeInput) -> float | None:
    """Currency amount at stake between entry and stop."""
    if not (_is_set(trade.stop_loss) and _is_set(trade.entry_price)):
        return None
    if trade.position_size is None:
        return None
    risk = _risk_per_unit(trade)
    if risk <= 0:
        return None
    return risk * trade.position_size


def compute_metrics(trade: TradeInput) -> TradeMetrics:
    """Compute all four derived fields from one input snapshot."""
    ratio, r_multiple = compute_risk_reward(trade)
    return TradeMetrics(
        pips=compute_pips(trade),
        risk_reward_ratio=ratio,
        r_multiple=r_multiple,
        risk_amount=compute_risk_amount(trade),
    )


def risk_percentage(risk_amount: float | None, balance: float | None) -> float | None:
    """Risk amount as a percentage of the account balance."""
    if risk_amount is None or not balance or balance <= 0:
        return None
    return risk_amount / balance * 100
