"""TradingAccount model: a broker account whose balance is reconciled from its trades."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class TradingAccount(SQLModel, table=True):
    __tablename__ = "trading_account"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    account_name: str
    account_number: str | None = None
    broker_name: str | None = None
    account_type: str | None = None  # "live", "demo", "prop"
    currency: str = "USD"

    # initial_balance is fixed at creation; current_balance is owned by the reconciler
    initial_balance: float = 0.0
    current_balance: float | None = None

    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
