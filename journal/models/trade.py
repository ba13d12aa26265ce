"""Trade model: one journaled position, open or closed, with its derived metrics."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class Trade(SQLModel, table=True):
    __tablename__ = "trade"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    account_id: int = Field(foreign_key="trading_account.id", index=True)
    ticket_id: str | None = Field(default=None, index=True)  # broker ticket from CSV imports
    strategy_id: int | None = Field(default=None, foreign_key="strategy.id", index=True)

    currency_pair: str = Field(index=True)  # e.g. "EURUSD", "USDJPY"
    direction: str  # "buy" or "sell"
    status: str = Field(default="open", index=True)  # "open" or "closed"

    entry_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    entry_price: float
    exit_time: datetime | None = None
    exit_price: float | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    position_size: float  # lots
    profit_loss: float | None = None  # account currency

    # Derived metrics, always written together by the metrics engine
    pips: float | None = None
    risk_reward_ratio: float | None = None
    r_multiple: float | None = None
    risk_amount: float | None = None

    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
