"""Account balance reconciliation.

An account's current balance is never edited directly: it is always
initial_balance plus the realized P&L of the account's closed trades. This
module recomputes that figure from the trade table and writes it back only
when the stored value has drifted beyond the tolerance, so calling it
redundantly costs a read and nothing more.

Store errors (SQLAlchemyError) are not caught here; callers decide how to
report them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from sqlmodel import Session, select, func

from journal.config import settings
from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.services.trade_status import TradeStatus

logger = logging.getLogger(__name__)


class AccountNotFoundError(LookupError):
    """Raised when reconciling an account id that does not exist."""


@dataclass
class BalanceReconciliation:
    account_id: int
    previous_balance: float | None
    new_balance: float
    updated: bool


def expected_balance(initial_balance: float | None, profit_losses: Iterable[float | None]) -> float:
    """initial_balance + sum of P&L, with missing values counted as zero."""
    return (initial_balance or 0.0) + sum(pl or 0.0 for pl in profit_losses)


def is_stale(stored_balance: float | None, new_balance: float, tolerance: float | None = None) -> bool:
    """True when the stored balance is missing or differs from the computed one beyond tolerance."""
    if stored_balance is None:
        return True
    if tolerance is None:
        tolerance = settings.balance_tolerance
    return abs(new_balance - stored_balance) > tolerance


def closed_pnl_total(session: Session, account_id: int) -> float:
    """Sum of profit_loss over the account's closed trades (NULL counts as 0)."""
    total = session.exec(
        select(func.coalesce(func.sum(Trade.profit_loss), 0.0)).where(
            Trade.account_id == account_id,
            Trade.status == TradeStatus.CLOSED.value,
        )
    ).one()
    return float(total or 0.0)


def reconcile_account(session: Session, account: TradingAccount) -> BalanceReconciliation:
    """Recompute and, if stale, persist the balance of an already-loaded account."""
    new_balance = expected_balance(account.initial_balance, [closed_pnl_total(session, account.id)])
    previous = account.current_balance

    if not is_stale(previous, new_balance):
        return BalanceReconciliation(account.id, previous, new_balance, updated=False)

    account.current_balance = new_balance
    account.updated_at = datetime.now(timezone.utc)
    session.add(account)
    session.commit()
    session.refresh(account)

    logger.info(
        f"Reconciled account {account.id}: balance {previous} -> {new_balance:.2f}"
    )
    return BalanceReconciliation(account.id, previous, new_balance, updated=True)


def reconcile_balance(session: Session, account_id: int) -> float:
    """Reconcile an account by id and return its authoritative balance."""
    account = session.get(TradingAccount, account_id)
    if account is None:
        raise AccountNotFoundError(f"Trading account {account_id} not found")
    return reconcile_account(session, account).new_balance
