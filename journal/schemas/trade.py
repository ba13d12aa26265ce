"""Pydantic schemas for Trade API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Direction = Literal["buy", "sell"]
Status = Literal["open", "closed"]


def _normalize_pair(value: str) -> str:
    pair = value.replace("/", "").replace("_", "").strip().upper()
    if not pair:
        raise ValueError("must not be empty")
    return pair


class TradeFields(BaseModel):
    """Raw trade inputs shared by create requests and metric previews."""

    currency_pair: str = Field(min_length=1, max_length=32)
    direction: Direction
    entry_price: float = Field(gt=0)
    position_size: float = Field(gt=0)
    exit_price: float | None = Field(default=None, ge=0)
    stop_loss: float | None = Field(default=None, ge=0)
    take_profit: float | None = Field(default=None, ge=0)
    profit_loss: float | None = None
    exit_time: datetime | None = None

    @field_validator("currency_pair")
    @classmethod
    def _pair(cls, value: str) -> str:
        return _normalize_pair(value)


class TradeCreate(TradeFields):
    account_id: int
    strategy_id: int | None = None
    entry_time: datetime | None = None
    status: Status = "open"
    ticket_id: str | None = Field(default=None, max_length=64)
    notes: str | None = None


class TradeUpdate(BaseModel):
    account_id: int | None = None
    strategy_id: int | None = None
    currency_pair: str | None = Field(default=None, min_length=1, max_length=32)
    direction: Direction | None = None
    status: Status | None = None
    entry_time: datetime | None = None
    entry_price: float | None = Field(default=None, gt=0)
    exit_time: datetime | None = None
    exit_price: float | None = Field(default=None, ge=0)
    stop_loss: float | None = Field(default=None, ge=0)
    take_profit: float | None = Field(default=None, ge=0)
    position_size: float | None = Field(default=None, gt=0)
    profit_loss: float | None = None
    ticket_id: str | None = Field(default=None, max_length=64)
    notes: str | None = None

    @field_validator("currency_pair")
    @classmethod
    def _optional_pair(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_pair(value)


class TradeMetricsRead(BaseModel):
    pips: float | None
    risk_reward_ratio: float | None
    r_multiple: float | None
    risk_amount: float | None
    risk_pct: float | None = None


class TradeRead(BaseModel):
    id: int
    account_id: int
    strategy_id: int | None
    ticket_id: str | None
    currency_pair: str
    direction: str
    status: str
    entry_time: datetime
    entry_price: float
    exit_time: datetime | None
    exit_price: float | None
    stop_loss: float | None
    take_profit: float | None
    position_size: float
    profit_loss: float | None
    pips: float | None
    risk_reward_ratio: float | None
    r_multiple: float | None
    risk_amount: float | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TradeMetricsPreview(TradeFields):
    """Inputs for computing metrics without saving; account_id adds balance context."""

    account_id: int | None = None
