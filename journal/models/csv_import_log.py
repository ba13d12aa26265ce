"""CsvImportLog model: one row per broker CSV upload."""

from datetime import datetime, timezone
from typing import Any

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON


class CsvImportLog(SQLModel, table=True):
    __tablename__ = "csv_import_log"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    account_id: int = Field(foreign_key="trading_account.id", index=True)
    file_name: str
    broker_format: str = "Unknown"  # "MT4/MT5" or "Unknown"
    status: str = "processing"  # "processing", "completed", "failed"
    total_rows: int = 0
    imported_rows: int = 0
    skipped_rows: int = 0
    error_rows: int = 0
    error_details: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None
