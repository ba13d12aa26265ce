"""Trade/account consistency orchestration.

Every path that reads or writes trades goes through here so that status
inference, metrics and balance reconciliation run in the same order
everywhere:

    infer status  ->  compute metrics  ->  persist trade  ->  reconcile account

Two flavours exist:

* Write path (create / update / import): the inputs just changed, so all four
  derived fields are replaced as a unit, including with None.
* Repair on read: historical rows missing metrics, or carrying exit data while
  still marked open, are fixed when they are loaded. Here a previously stored
  metric is never overwritten by a None, because a None only means the
  current inputs cannot produce an answer.

Trades and accounts are processed one at a time within the caller's session.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Sequence

from sqlmodel import Session

from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.services.balance import (
    AccountNotFoundError,
    BalanceReconciliation,
    reconcile_account,
)
from journal.services.trade_metrics import METRIC_FIELDS, TradeInput, TradeMetrics, compute_metrics
from journal.services.trade_status import TradeStatus, has_exit_evidence, infer_status

logger = logging.getLogger(__name__)


@dataclass
class RepairReport:
    repaired_trade_ids: list[int] = field(default_factory=list)
    reconciliations: list[BalanceReconciliation] = field(default_factory=list)

    @property
    def repaired(self) -> int:
        return len(self.repaired_trade_ids)

    @property
    def balances_updated(self) -> int:
        return sum(1 for r in self.reconciliations if r.updated)


def needs_repair(trade: Trade) -> bool:
    """Trade lacks every headline metric, or has exit data but is not closed."""
    missing_metrics = (
        trade.pips is None
        and trade.risk_reward_ratio is None
        and trade.r_multiple is None
    )
    should_be_closed = has_exit_evidence(trade) and trade.status != TradeStatus.CLOSED.value
    return missing_metrics or should_be_closed


def metrics_for(session: Session, trade: Trade) -> TradeMetrics:
    """Run the metrics engine with the owning account as context."""
    account = session.get(TradingAccount, trade.account_id)
    balance = account.current_balance if account else None
    return compute_metrics(TradeInput.from_record(trade, current_balance=balance))


def _merge_metrics(trade: Trade, metrics: TradeMetrics) -> bool:
    changed = False
    for name in METRIC_FIELDS:
        value = getattr(metrics, name)
        if value is not None and value != getattr(trade, name):
            setattr(trade, name, value)
            changed = True
    return changed


def repair_trade(session: Session, trade: Trade) -> bool:
    """Fix status and missing metrics on one stored trade. Returns True if it was written."""
    status = infer_status(trade).value
    changed = status != trade.status
    trade.status = status

    changed = _merge_metrics(trade, metrics_for(session, trade)) or changed
    if not changed:
        return False

    trade.updated_at = datetime.now(timezone.utc)
    session.add(trade)
    session.commit()
    session.refresh(trade)
    logger.info(f"Repaired trade {trade.id} (status={trade.status})")
    return True


def reconcile_accounts(session: Session, account_ids: Iterable[int | None]) -> list[BalanceReconciliation]:
    """Reconcile each distinct account id in order, skipping None."""
    results = []
    seen: set[int] = set()
    for account_id in account_ids:
        if account_id is None or account_id in seen:
            continue
        seen.add(account_id)
        account = session.get(TradingAccount, account_id)
        if account is None:
            raise AccountNotFoundError(f"Trading account {account_id} not found")
        results.append(reconcile_account(session, account))
    return results


def repair_trades(
    session: Session,
    trades: Sequence[Trade],
    extra_account_ids: Iterable[int] = (),
) -> RepairReport:
    """Repair-on-read for a batch of trades, then reconcile the affected accounts.

    Accounts owning a repaired trade are always reconciled; extra_account_ids
    lets dashboard-style callers reconcile every account they display.
    """
    report = RepairReport()
    touched: list[int] = []

    for trade in trades:
        if not needs_repair(trade):
            continue
        if repair_trade(session, trade):
            report.repaired_trade_ids.append(trade.id)
            touched.append(trade.account_id)

    report.reconciliations = reconcile_accounts(session, [*touched, *extra_account_ids])
    if report.repaired:
        logger.info(
            f"Repair pass: {report.repaired} trades fixed, "
            f"{report.balances_updated} balances corrected"
        )
    return report


def apply_metrics(trade: Trade, metrics: TradeMetrics):
    """Replace all four derived fields from one computation."""
    for name in METRIC_FIELDS:
        setattr(trade, name, getattr(metrics, name))


def prepare_trade(session: Session, trade: Trade) -> Trade:
    """Infer status and recompute metrics in place without persisting."""
    trade.status = infer_status(trade).value
    apply_metrics(trade, metrics_for(session, trade))
    return trade


def save_trade(
    session: Session,
    trade: Trade,
    previous_account_id: int | None = None,
) -> list[BalanceReconciliation]:
    """Write path for a created or edited trade.

    Reconciles the owning account, and the previous one when the trade moved.
    """
    prepare_trade(session, trade)
    trade.updated_at = datetime.now(timezone.utc)
    session.add(trade)
    session.commit()
    session.refresh(trade)
    return reconcile_accounts(session, [trade.account_id, previous_account_id])


def delete_trade(session: Session, trade: Trade) -> list[BalanceReconciliation]:
    """Remove a trade and take its P&L out of the owning account's balance."""
    account_id = trade.account_id
    session.delete(trade)
    session.commit()
    return reconcile_accounts(session, [account_id])
