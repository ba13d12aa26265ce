"""System API — health check and full repair/reconcile pass."""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from journal.database import get_session
from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.models.user import User
from journal.services.trade_repair import repair_trades
from journal.api.deps import get_current_user, reconciliation_failed

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.post("/reconcile")
def reconcile_everything(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Repair every trade and reconcile every account the user owns."""
    account_ids = list(session.exec(
        select(TradingAccount.id).where(TradingAccount.user_id == user.id)
    ).all())
    trades = session.exec(
        select(Trade).where(Trade.user_id == user.id).order_by(Trade.id)
    ).all()

    try:
        report = repair_trades(session, trades, extra_account_ids=account_ids)
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)

    return {
        "trades_repaired": report.repaired,
        "accounts_checked": len(report.reconciliations),
        "balances_updated": report.balances_updated,
        "balances": {r.account_id: round(r.new_balance, 2) for r in report.reconciliations},
    }
