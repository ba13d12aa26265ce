"""Pydantic schemas for CSV import API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ImportResponse(BaseModel):
    log_id: int
    total_rows: int
    imported: int
    duplicates: int
    skipped: int
    errors: list[str]
    balance: float | None
    message: str


class CsvImportLogRead(BaseModel):
    id: int
    account_id: int
    file_name: str
    broker_format: str
    status: str
    total_rows: int
    imported_rows: int
    skipped_rows: int
    error_rows: int
    error_details: dict[str, Any] | None
    created_at: datetime
    completed_at: datetime | None

    model_config = {"from_attributes": True}
