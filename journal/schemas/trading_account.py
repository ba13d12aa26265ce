"""Pydantic schemas for TradingAccount API."""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator


def _trim(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    if not text:
        raise ValueError("must not be empty")
    return text


class TradingAccountCreate(BaseModel):
    account_name: str = Field(min_length=1, max_length=120)
    account_number: str | None = Field(default=None, max_length=64)
    broker_name: str | None = Field(default=None, max_length=120)
    account_type: str | None = Field(default=None, max_length=32)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    initial_balance: float = Field(default=0.0, ge=0)
    is_active: bool = True

    @field_validator("account_name")
    @classmethod
    def _trim_name(cls, value: str) -> str:
        return _trim(value)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.strip().upper()


class TradingAccountUpdate(BaseModel):
    account_name: str | None = Field(default=None, min_length=1, max_length=120)
    account_number: str | None = Field(default=None, max_length=64)
    broker_name: str | None = Field(default=None, max_length=120)
    account_type: str | None = Field(default=None, max_length=32)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    initial_balance: float | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @field_validator("account_name")
    @classmethod
    def _trim_optional_name(cls, value: str | None) -> str | None:
        return _trim(value)


class TradingAccountRead(BaseModel):
    id: int
    account_name: str
    account_number: str | None
    broker_name: str | None
    account_type: str | None
    currency: str
    initial_balance: float
    current_balance: float | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
