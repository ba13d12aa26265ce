"""Pydantic schemas for Strategy API."""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator


def _clean_timeframes(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    cleaned: list[str] = []
    for value in values:
        tf = value.strip().upper()
        if tf and tf not in cleaned:
            cleaned.append(tf)
    return cleaned


class StrategyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    rules: str | None = None
    timeframes: list[str] = []
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _trim_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("must not be empty")
        return name

    @field_validator("timeframes")
    @classmethod
    def _timeframes(cls, value: list[str]) -> list[str]:
        return _clean_timeframes(value)


class StrategyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    rules: str | None = None
    timeframes: list[str] | None = None
    is_active: bool | None = None

    @field_validator("timeframes")
    @classmethod
    def _optional_timeframes(cls, value: list[str] | None) -> list[str] | None:
        return _clean_timeframes(value)


class StrategyRead(BaseModel):
    id: int
    name: str
    description: str | None
    rules: str | None
    timeframes: list[str] | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
