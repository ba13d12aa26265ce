"""Pydantic schemas for user preferences."""

from pydantic import BaseModel, Field

from journal.config import settings


class Preferences(BaseModel):
    """Trading preferences. Pure configuration: no balances or capital."""

    risk_per_trade_pct: float = Field(default=settings.default_risk_per_trade_pct, ge=0, le=100)
    max_daily_loss: float = Field(default=settings.default_max_daily_loss, ge=0)
    leverage: float = Field(default=settings.default_leverage, gt=0)
    max_loss_target: float = Field(default=settings.default_max_loss_target, ge=0)
    profit_target: float = Field(default=settings.default_profit_target, ge=0)
    daily_loss_target: float = Field(default=settings.default_daily_loss_target, ge=0)

    model_config = {"extra": "ignore"}


class PreferencesUpdate(BaseModel):
    risk_per_trade_pct: float | None = Field(default=None, ge=0, le=100)
    max_daily_loss: float | None = Field(default=None, ge=0)
    leverage: float | None = Field(default=None, gt=0)
    max_loss_target: float | None = Field(default=None, ge=0)
    profit_target: float | None = Field(default=None, ge=0)
    daily_loss_target: float | None = Field(default=None, ge=0)


class Capital(BaseModel):
    """Derived on every read from the accounts' reconciled balances."""

    starting_capital: float
    current_capital: float
    total_return_pct: float
    risk_per_trade_amount: float


class SettingsRead(BaseModel):
    preferences: Preferences
    capital: Capital
