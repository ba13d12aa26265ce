"""CRUD API for trading accounts."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from journal.database import get_session
from journal.models.csv_import_log import CsvImportLog
from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.models.user import User
from journal.schemas.trading_account import (
    TradingAccountCreate,
    TradingAccountUpdate,
    TradingAccountRead,
)
from journal.services.balance import reconcile_account
from journal.api.deps import get_current_user, get_owned_account, reconciliation_failed

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("", response_model=list[TradingAccountRead])
def list_accounts(
    active: bool | None = None,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    stmt = select(TradingAccount).where(TradingAccount.user_id == user.id)
    if active is not None:
        stmt = stmt.where(TradingAccount.is_active == active)
    return session.exec(stmt.order_by(TradingAccount.id)).all()


@router.post("", response_model=TradingAccountRead, status_code=201)
def create_account(
    data: TradingAccountCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    account = TradingAccount(
        **data.model_dump(),
        user_id=user.id,
        current_balance=data.initial_balance,
    )
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


@router.get("/{account_id}", response_model=TradingAccountRead)
def get_account(
    account_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    account = get_owned_account(session, user, account_id)
    try:
        reconcile_account(session, account)
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)
    return account


@router.put("/{account_id}", response_model=TradingAccountRead)
def update_account(
    account_id: int,
    data: TradingAccountUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    account = get_owned_account(session, user, account_id)

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(account, key, value)
    account.updated_at = datetime.now(timezone.utc)

    session.add(account)
    session.commit()
    session.refresh(account)

    # initial_balance is the reconciliation basis, so any edit re-derives the balance
    try:
        reconcile_account(session, account)
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)
    return account


@router.delete("/{account_id}", status_code=204)
def delete_account(
    account_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    account = get_owned_account(session, user, account_id)
    session.execute(delete(Trade).where(Trade.account_id == account.id))
    session.execute(delete(CsvImportLog).where(CsvImportLog.account_id == account.id))
    session.delete(account)
    session.commit()
