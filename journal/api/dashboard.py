"""Dashboard API — summary stats and equity curves."""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from journal.database import get_session
from journal.models.strategy import Strategy
from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.models.user import User
from journal.services import analytics
from journal.services.trade_repair import repair_trades
from journal.api.deps import get_current_user, get_owned_account, reconciliation_failed

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def _load_repaired(
    session: Session, user: User, account_id: int | None
) -> tuple[list[Trade], list[TradingAccount]]:
    """Active accounts (or one account) and their trades, after the repair pass."""
    if account_id is not None:
        accounts = [get_owned_account(session, user, account_id)]
    else:
        accounts = list(session.exec(
            select(TradingAccount).where(
                TradingAccount.user_id == user.id,
                TradingAccount.is_active == True,
            )
        ).all())

    account_ids = [a.id for a in accounts]
    trades = list(session.exec(
        select(Trade)
        .where(Trade.user_id == user.id, Trade.account_id.in_(account_ids))  # type: ignore[attr-defined]
        .order_by(Trade.entry_time.desc())
    ).all()) if account_ids else []

    try:
        repair_trades(session, trades, extra_account_ids=account_ids)
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)
    return trades, accounts


@router.get("/summary")
def dashboard_summary(
    account_id: int | None = None,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Aggregated performance stats across active accounts."""
    trades, accounts = _load_repaired(session, user, account_id)
    strategies = session.exec(select(Strategy).where(Strategy.user_id == user.id)).all()
    summary = analytics.summarize_performance(trades, accounts, strategies=strategies)
    summary["accounts"] = len(accounts)
    return summary


@router.get("/equity")
def equity_curve(
    account_id: int | None = None,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Equity curve points, one per closed trade."""
    trades, accounts = _load_repaired(session, user, account_id)
    starting = sum(a.initial_balance or 0.0 for a in accounts)
    return analytics.equity_curve(analytics.closed_trades(trades), starting)
