"""Performance analytics over journaled trades.

Pure computation over already-loaded rows: callers run the repair pass first
so that statuses, metrics and balances are current. Only closed trades count
towards results; they are ordered by exit time (entry time when the exit time
is missing).
"""

from collections import defaultdict
from datetime import datetime, timezone
from typing import Sequence

import numpy as np

from journal.models.strategy import Strategy
from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.services.trade_metrics import risk_percentage
from journal.services.trade_status import TradeStatus
from journal.utils.constants import R_MULTIPLE_BUCKETS, RISK_PCT_BUCKETS, WEEKDAYS


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _closed_at(trade: Trade) -> datetime:
    return _as_utc(trade.exit_time or trade.entry_time)


def _pnl(trade: Trade) -> float:
    return trade.profit_loss or 0.0


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def closed_trades(trades: Sequence[Trade]) -> list[Trade]:
    """Closed trades in chronological order."""
    closed = [t for t in trades if t.status == TradeStatus.CLOSED.value]
    return sorted(closed, key=_closed_at)


def max_streaks(closed: Sequence[Trade]) -> tuple[int, int]:
    """Longest winning and losing runs. A breakeven trade counts as a non-win."""
    max_win = max_loss = current = 0
    last: bool | None = None
    for trade in closed:
        won = _pnl(trade) > 0
        current = current + 1 if last is None or last == won else 1
        last = won
        if won:
            max_win = max(max_win, current)
        else:
            max_loss = max(max_loss, current)
    return max_win, max_loss


def equity_curve(closed: Sequence[Trade], starting_capital: float = 0.0) -> list[dict]:
    """Cumulative P&L, equity and drawdown after each closed trade."""
    if not closed:
        return []
    pnl = np.array([_pnl(t) for t in closed], dtype=float)
    cumulative = np.cumsum(pnl)
    equity = starting_capital + cumulative
    peaks = np.maximum.accumulate(np.concatenate(([starting_capital], equity)))[1:]
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdown = np.where(peaks > 0, (peaks - equity) / peaks * 100, 0.0)

    return [
        {
            "trade": i + 1,
            "trade_id": t.id,
            "timestamp": _closed_at(t).isoformat(),
            "cumulative_pnl": round(float(cumulative[i]), 2),
            "equity": round(float(equity[i]), 2),
            "drawdown_pct": round(float(drawdown[i]), 2),
        }
        for i, t in enumerate(closed)
    ]


def pnl_by_weekday(closed: Sequence[Trade]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for t in closed:
        totals[WEEKDAYS[_closed_at(t).weekday()]] += _pnl(t)
    return {day: round(totals[day], 2) for day in WEEKDAYS if day in totals}


def pnl_by_month(closed: Sequence[Trade]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for t in closed:
        totals[_closed_at(t).strftime("%Y-%m")] += _pnl(t)
    return {month: round(total, 2) for month, total in sorted(totals.items())}


def pair_performance(closed: Sequence[Trade], top: int = 5) -> list[dict]:
    """Pairs ranked by absolute P&L."""
    stats: dict[str, dict] = {}
    for t in closed:
        s = stats.setdefault(t.currency_pair, {"trades": 0, "profit": 0.0, "wins": 0})
        s["trades"] += 1
        s["profit"] += _pnl(t)
        if _pnl(t) > 0:
            s["wins"] += 1
    rows = [
        {
            "pair": pair,
            "trades": s["trades"],
            "profit": round(s["profit"], 2),
            "win_rate": round(s["wins"] / s["trades"] * 100, 1),
        }
        for pair, s in stats.items()
    ]
    rows.sort(key=lambda r: abs(r["profit"]), reverse=True)
    return rows[:top]


def _bucket_stats(label: str, trades: list[Trade]) -> dict:
    wins = sum(1 for t in trades if _pnl(t) > 0)
    return {
        "bucket": label,
        "trades": len(trades),
        "total_pnl": round(sum(_pnl(t) for t in trades), 2),
        "win_rate": round(wins / len(trades) * 100, 1) if trades else 0.0,
    }


def strategy_performance(closed: Sequence[Trade], names: dict[int, str]) -> list[dict]:
    """Per-strategy results, untagged trades grouped under "No strategy"."""
    groups: dict[int | None, list[Trade]] = defaultdict(list)
    for t in closed:
        groups[t.strategy_id].append(t)

    rows = []
    for strategy_id, trades in groups.items():
        r_values = [t.r_multiple for t in trades if t.r_multiple is not None]
        stats = _bucket_stats(names.get(strategy_id, "No strategy"), trades)
        rows.append({
            "strategy_id": strategy_id,
            "strategy": stats.pop("bucket"),
            **stats,
            "avg_r_multiple": round(_mean(r_values), 2),
        })
    rows.sort(key=lambda r: r["total_pnl"], reverse=True)
    return rows


def r_multiple_distribution(closed: Sequence[Trade]) -> list[dict]:
    with_r = [t for t in closed if t.r_multiple is not None]
    return [
        _bucket_stats(label, [t for t in with_r if low <= t.r_multiple < high])
        for label, low, high in R_MULTIPLE_BUCKETS
    ]


def trade_risk_pct(trade: Trade, balances: dict[int, float | None]) -> float | None:
    return risk_percentage(trade.risk_amount, balances.get(trade.account_id))


def risk_distribution(closed: Sequence[Trade], balances: dict[int, float | None]) -> list[dict]:
    pcts = [(t, trade_risk_pct(t, balances)) for t in closed]
    pcts = [(t, p) for t, p in pcts if p is not None]
    return [
        _bucket_stats(label, [t for t, p in pcts if low < p <= high])
        for label, low, high in RISK_PCT_BUCKETS
    ]


def build_recommendations(avg_risk_pct: float, avg_r_multiple: float, profit_factor: float) -> list[dict]:
    """Plain-language risk feedback, most urgent first."""
    recs: list[dict] = []

    if avg_risk_pct > 3:
        recs.append({"type": "warning", "priority": 1, "message": (
            f"Average risk per trade is {avg_risk_pct:.2f}%, above the recommended 1-2%. "
            "Consider reducing position sizes."
        )})
    elif avg_risk_pct > 2:
        recs.append({"type": "info", "priority": 2, "message": (
            f"Average risk per trade is {avg_risk_pct:.2f}%. Keeping it at 1-2% preserves capital."
        )})
    elif avg_risk_pct > 0:
        recs.append({"type": "success", "priority": 3, "message": (
            f"Average risk per trade is {avg_risk_pct:.2f}%, within the recommended 1-2% range."
        )})

    if 0 < avg_r_multiple < 1:
        recs.append({"type": "warning", "priority": 1, "message": (
            f"Average R-multiple is {avg_r_multiple:.2f}R: you risk more than you win. "
            "Aim for at least 1:2 risk:reward."
        )})
    elif 1 <= avg_r_multiple < 2:
        recs.append({"type": "info", "priority": 2, "message": (
            f"Average R-multiple is {avg_r_multiple:.2f}R. Targeting 2R+ improves long-term results."
        )})
    elif avg_r_multiple >= 2:
        recs.append({"type": "success", "priority": 3, "message": (
            f"Average R-multiple is {avg_r_multiple:.2f}R, a strong risk:reward profile."
        )})

    if 0 < profit_factor < 1:
        recs.append({"type": "warning", "priority": 1, "message": (
            f"Profit factor is {profit_factor:.2f}: losses exceed wins."
        )})
    elif 1 <= profit_factor < 1.5:
        recs.append({"type": "info", "priority": 2, "message": (
            f"Profit factor is {profit_factor:.2f}. Aim for 1.5+ for sustainable trading."
        )})

    recs.sort(key=lambda r: r["priority"])
    return recs


def summarize_performance(
    trades: Sequence[Trade],
    accounts: Sequence[TradingAccount],
    today: datetime | None = None,
    strategies: Sequence[Strategy] = (),
) -> dict:
    """Dashboard statistics for a set of trades and the accounts they belong to."""
    today = _as_utc(today or datetime.now(timezone.utc))
    closed = closed_trades(trades)
    pnls = [_pnl(t) for t in closed]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]

    total_pnl = sum(pnls)
    gross_loss = abs(sum(losses))
    profit_factor = sum(wins) / gross_loss if gross_loss > 0 else 0.0
    win_streak, loss_streak = max_streaks(closed)

    starting_capital = sum(a.initial_balance or 0.0 for a in accounts)
    current_capital = sum(a.current_balance or 0.0 for a in accounts)
    total_return = (
        (current_capital - starting_capital) / starting_capital * 100 if starting_capital > 0 else 0.0
    )

    days = {_closed_at(t).date() for t in closed}
    today_pnl = sum(_pnl(t) for t in closed if _closed_at(t).date() == today.date())

    positive_rr = [t.risk_reward_ratio for t in closed if t.risk_reward_ratio and t.risk_reward_ratio > 0]
    r_values = [t.r_multiple for t in closed if t.r_multiple is not None]
    balances = {a.id: a.current_balance for a in accounts}
    risk_pcts = [p for p in (trade_risk_pct(t, balances) for t in closed) if p is not None]

    curve = equity_curve(closed, starting_capital)
    avg_risk_pct = _mean(risk_pcts)
    avg_r = _mean(r_values)

    return {
        "total_trades": len(trades),
        "open_trades": sum(1 for t in trades if t.status != TradeStatus.CLOSED.value),
        "closed_trades": len(closed),
        "wins": len(wins),
        "losses": len(losses),
        "breakeven": len(pnls) - len(wins) - len(losses),
        "win_rate": round(len(wins) / len(closed) * 100, 1) if closed else 0.0,
        "total_pnl": round(total_pnl, 2),
        "avg_win": round(_mean(wins), 2),
        "avg_loss": round(abs(_mean(losses)), 2),
        "profit_factor": round(profit_factor, 2),
        "avg_risk_reward": round(_mean(positive_rr), 2),
        "avg_r_multiple": round(avg_r, 2),
        "avg_risk_pct": round(avg_risk_pct, 2),
        "largest_win": round(max(wins), 2) if wins else 0.0,
        "largest_loss": round(min(losses), 2) if losses else 0.0,
        "max_win_streak": win_streak,
        "max_loss_streak": loss_streak,
        "daily_avg": round(total_pnl / len(days), 2) if days else 0.0,
        "today_pnl": round(today_pnl, 2),
        "starting_capital": round(starting_capital, 2),
        "current_capital": round(current_capital, 2),
        "total_return_pct": round(total_return, 2),
        "max_drawdown_pct": max((p["drawdown_pct"] for p in curve), default=0.0),
        "pnl_by_weekday": pnl_by_weekday(closed),
        "pnl_by_month": pnl_by_month(closed),
        "top_pairs": pair_performance(closed),
        "strategy_performance": strategy_performance(closed, {s.id: s.name for s in strategies}),
        "r_multiple_distribution": r_multiple_distribution(closed),
        "risk_distribution": risk_distribution(closed, balances),
        "recommendations": build_recommendations(avg_risk_pct, avg_r, profit_factor),
    }
