"""Broker CSV import API."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from journal.database import get_session
from journal.models.csv_import_log import CsvImportLog
from journal.models.user import User
from journal.schemas.csv_import import ImportResponse, CsvImportLogRead
from journal.services.csv_import import CsvImportError, import_trades_csv
from journal.api.deps import get_current_user, get_owned_account, reconciliation_failed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/imports", tags=["imports"])


@router.post("", response_model=ImportResponse, status_code=201)
async def upload_csv(
    account_id: int = Form(...),
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Import a broker trade history export into one account."""
    get_owned_account(session, user, account_id)
    content = await file.read()

    try:
        result = import_trades_csv(
            session,
            user_id=user.id,
            account_id=account_id,
            file_name=file.filename or "upload.csv",
            content=content,
        )
    except CsvImportError as e:
        logger.warning(f"CSV import rejected for account {account_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)

    return ImportResponse(
        log_id=result.log_id,
        total_rows=result.total_rows,
        imported=result.imported,
        duplicates=result.duplicates,
        skipped=result.skipped,
        errors=result.errors,
        balance=result.balance,
        message=result.message,
    )


@router.get("", response_model=list[CsvImportLogRead])
def list_imports(
    account_id: int | None = None,
    limit: int = 50,
    offset: int = 0,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    stmt = (
        select(CsvImportLog)
        .where(CsvImportLog.user_id == user.id)
        .order_by(CsvImportLog.created_at.desc())
    )
    if account_id is not None:
        stmt = stmt.where(CsvImportLog.account_id == account_id)
    return session.exec(stmt.offset(offset).limit(limit)).all()
