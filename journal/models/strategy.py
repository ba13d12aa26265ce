"""Strategy model: a named trading playbook that trades can be tagged with."""

from datetime import datetime, timezone

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON


class Strategy(SQLModel, table=True):
    __tablename__ = "strategy"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    name: str
    description: str | None = None
    rules: str | None = None  # free-text entry/exit checklist
    timeframes: list[str] | None = Field(default=None, sa_column=Column(JSON))  # e.g. ["M15", "H1"]
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
