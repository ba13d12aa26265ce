"""Trade journal API.

Reads repair stale rows before returning them; writes recompute metrics and
reconcile the owning account's balance.
"""

from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from journal.database import get_session
from journal.models.trade import Trade
from journal.models.user import User
from journal.schemas.trade import (
    TradeCreate,
    TradeUpdate,
    TradeRead,
    TradeMetricsPreview,
    TradeMetricsRead,
)
from journal.services.trade_metrics import TradeInput, compute_metrics, risk_percentage
from journal.services.trade_repair import repair_trades, save_trade, delete_trade
from journal.api.deps import get_current_user, get_owned_account, get_owned_strategy, reconciliation_failed

router = APIRouter(prefix="/api/trades", tags=["trades"])

# Columns a partial update may change but never clear
_REQUIRED_FIELDS = {"account_id", "currency_pair", "direction", "entry_price", "position_size", "entry_time", "status"}


def _get_owned_trade(session: Session, user: User, trade_id: int) -> Trade:
    trade = session.get(Trade, trade_id)
    if not trade or trade.user_id != user.id:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade


@router.get("", response_model=list[TradeRead])
def list_trades(
    account_id: int | None = None,
    strategy_id: int | None = None,
    status: Literal["open", "closed"] | None = None,
    limit: int = 50,
    offset: int = 0,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    scope = select(Trade).where(Trade.user_id == user.id)
    if account_id is not None:
        scope = scope.where(Trade.account_id == account_id)

    # Repair first: the pass can move a trade from open to closed
    try:
        repair_trades(session, session.exec(scope).all())
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)

    stmt = scope.order_by(Trade.entry_time.desc())
    if strategy_id is not None:
        stmt = stmt.where(Trade.strategy_id == strategy_id)
    if status is not None:
        stmt = stmt.where(Trade.status == status)
    return session.exec(stmt.offset(offset).limit(limit)).all()


@router.post("/metrics/preview", response_model=TradeMetricsRead)
def preview_metrics(
    data: TradeMetricsPreview,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Compute derived metrics for form input without saving anything."""
    balance = None
    if data.account_id is not None:
        balance = get_owned_account(session, user, data.account_id).current_balance

    metrics = compute_metrics(TradeInput.from_record(data, current_balance=balance))
    return TradeMetricsRead(
        **metrics.as_dict(),
        risk_pct=risk_percentage(metrics.risk_amount, balance),
    )


@router.get("/{trade_id}", response_model=TradeRead)
def get_trade(
    trade_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    trade = _get_owned_trade(session, user, trade_id)
    try:
        repair_trades(session, [trade])
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)
    return trade


@router.post("", response_model=TradeRead, status_code=201)
def create_trade(
    data: TradeCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_owned_account(session, user, data.account_id)
    if data.strategy_id is not None:
        get_owned_strategy(session, user, data.strategy_id)

    payload = data.model_dump(exclude_none=True)
    payload.setdefault("entry_time", datetime.now(timezone.utc))
    trade = Trade(**payload, user_id=user.id)

    try:
        save_trade(session, trade)
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)
    return trade


@router.put("/{trade_id}", response_model=TradeRead)
def update_trade(
    trade_id: int,
    data: TradeUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    trade = _get_owned_trade(session, user, trade_id)
    update_data = data.model_dump(exclude_unset=True)

    previous_account_id = trade.account_id
    if update_data.get("account_id") is not None:
        get_owned_account(session, user, update_data["account_id"])
    if update_data.get("strategy_id") is not None:
        get_owned_strategy(session, user, update_data["strategy_id"])

    for key, value in update_data.items():
        if value is None and key in _REQUIRED_FIELDS:
            continue
        setattr(trade, key, value)

    try:
        save_trade(session, trade, previous_account_id=previous_account_id)
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)
    return trade


@router.delete("/{trade_id}", status_code=204)
def remove_trade(
    trade_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    trade = _get_owned_trade(session, user, trade_id)
    try:
        delete_trade(session, trade)
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)
