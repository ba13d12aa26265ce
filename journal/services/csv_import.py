"""Broker CSV import.

Reads MT4/MT5-style trade history exports (and the looser column names other
platforms use), maps each row onto a Trade, drops rows already journaled,
inserts the rest in batches and reconciles the account once at the end. Each
upload leaves a CsvImportLog row behind with its counts and batch errors.
"""

import io
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from journal.config import settings
from journal.models.csv_import_log import CsvImportLog
from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.services.balance import AccountNotFoundError, reconcile_balance
from journal.services.trade_repair import prepare_trade
from journal.utils.constants import CSV_COLUMN_ALIASES, MT4_TIME_FORMAT, PRICE_MATCH_EPSILON

logger = logging.getLogger(__name__)


class CsvImportError(ValueError):
    """The upload could not be turned into any importable trade."""


@dataclass
class ParsedTrade:
    currency_pair: str
    direction: str
    entry_time: datetime
    entry_price: float
    position_size: float
    ticket_id: str | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    exit_time: datetime | None = None
    exit_price: float | None = None
    profit_loss: float | None = None
    entry_time_estimated: bool = False  # entry time was unreadable; import time used

    def trade_fields(self) -> dict:
        fields = asdict(self)
        fields.pop("entry_time_estimated")
        return fields


@dataclass
class ImportResult:
    log_id: int
    total_rows: int
    imported: int = 0
    duplicates: int = 0
    invalid: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    balance: float | None = None

    @property
    def skipped(self) -> int:
        return self.duplicates + self.invalid + self.failed

    @property
    def message(self) -> str:
        if self.imported == 0 and self.duplicates and not self.errors:
            return f"All {self.duplicates} trades already exist. No new trades imported."
        if self.imported == 0:
            return "Import failed. " + ("; ".join(self.errors) or "No trades were imported.")
        plural = "s" if self.imported != 1 else ""
        text = f"Successfully imported {self.imported} trade{plural}."
        if self.duplicates:
            text += f" {self.duplicates} duplicate{'s' if self.duplicates != 1 else ''} skipped."
        return text


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def read_broker_csv(content: bytes | str) -> pd.DataFrame:
    """Load an export into a DataFrame of stripped strings."""
    buffer = io.BytesIO(content) if isinstance(content, bytes) else io.StringIO(content)
    try:
        df = pd.read_csv(
            buffer,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        raise CsvImportError("No data found in CSV file")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise CsvImportError(f"CSV parsing error: {e}")

    df.columns = [str(c).strip() for c in df.columns]
    if df.empty:
        raise CsvImportError("No data found in CSV file")
    return df


def detect_broker_format(columns) -> str:
    return "MT4/MT5" if any("ticket" in str(c).lower() for c in columns) else "Unknown"


def resolve_columns(columns) -> dict[str, str | None]:
    """Map each logical field to the first matching header (case-insensitive)."""
    by_lower = {str(c).strip().lower(): c for c in columns}
    resolved: dict[str, str | None] = {}
    for key, aliases in CSV_COLUMN_ALIASES.items():
        resolved[key] = next(
            (by_lower[a.lower()] for a in aliases if a.lower() in by_lower), None
        )
    return resolved


def parse_time(value) -> datetime | None:
    """Parse ISO or MT4 ("2024.01.15 10:30:00") timestamps as UTC."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    ts = pd.to_datetime(text, format=MT4_TIME_FORMAT, errors="coerce", utc=True)
    if pd.isna(ts):
        ts = pd.to_datetime(text, errors="coerce", utc=True)
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _numeric_column(df: pd.DataFrame, column: str | None) -> pd.Series:
    if column is None:
        return pd.Series([float("nan")] * len(df), index=df.index, dtype=float)
    # "1 234.50" and "1,234.50" both occur in broker statements
    cleaned = df[column].astype(str).str.replace(r"[,\s]", "", regex=True)
    return pd.to_numeric(cleaned, errors="coerce")


def _text_column(df: pd.DataFrame, column: str | None) -> pd.Series:
    if column is None:
        return pd.Series([""] * len(df), index=df.index, dtype=str)
    return df[column].astype(str).str.strip()


def _opt(value: float) -> float | None:
    return None if pd.isna(value) else float(value)


def _level(value: float) -> float | None:
    # Brokers write 0 for an unset S/L or T/P
    value = _opt(value)
    return None if value is None or value == 0 else value


def _direction(raw_type: str) -> str | None:
    text = raw_type.lower()
    if not text:
        return "buy"
    if "buy" in text:
        return "buy"
    if "sell" in text:
        return "sell"
    return None  # balance, credit, deposit... rows are not trades


def map_broker_rows(df: pd.DataFrame, now: datetime | None = None) -> tuple[list[ParsedTrade], int]:
    """Map export rows onto trades.

    Returns: (valid trades, number of rows rejected)
    """
    now = now or datetime.now(timezone.utc)
    cols = resolve_columns(df.columns)

    tickets = _text_column(df, cols["ticket_id"])
    symbols = _text_column(df, cols["symbol"])
    types = _text_column(df, cols["type"]) if cols["type"] else None
    open_times = _text_column(df, cols["open_time"])
    close_times = _text_column(df, cols["close_time"])
    prices = _numeric_column(df, cols["price"])
    volumes = _numeric_column(df, cols["volume"]).fillna(0.0)
    stops = _numeric_column(df, cols["stop_loss"])
    targets = _numeric_column(df, cols["take_profit"])
    close_prices = _numeric_column(df, cols["close_price"])
    profits = _numeric_column(df, cols["profit"])

    trades: list[ParsedTrade] = []
    rejected = 0
    for idx in df.index:
        direction = _direction(types[idx]) if types is not None else "buy"
        pair = symbols[idx].replace("/", "").replace("_", "").strip().upper()
        entry_price = _opt(prices[idx]) or 0.0
        size = float(volumes[idx])

        if direction is None or not pair or entry_price <= 0 or size <= 0:
            logger.warning(f"CSV import: skipping row {idx + 1} (not a valid trade)")
            rejected += 1
            continue

        ticket_id = tickets[idx] or None
        entry_time = parse_time(open_times[idx])
        if entry_time is None and ticket_id is None:
            # Nothing would identify the row on a later re-upload
            logger.warning(f"CSV import: skipping row {idx + 1} (no entry time or ticket)")
            rejected += 1
            continue

        trades.append(ParsedTrade(
            ticket_id=ticket_id,
            currency_pair=pair,
            direction=direction,
            entry_time=entry_time or now,
            entry_price=entry_price,
            position_size=size,
            stop_loss=_level(stops[idx]),
            take_profit=_level(targets[idx]),
            exit_time=parse_time(close_times[idx]),
            exit_price=_level(close_prices[idx]),
            profit_loss=_opt(profits[idx]),
            entry_time_estimated=entry_time is None,
        ))
    return trades, rejected


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------

def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _same_price(a: float | None, b: float | None) -> bool:
    return abs((a or 0.0) - (b or 0.0)) < PRICE_MATCH_EPSILON


def is_duplicate(candidate, existing) -> bool:
    """Whether candidate is already journaled as one of existing.

    When both sides carry a broker ticket the ticket alone decides, so
    distinct orders filled at the same time and price are all kept. Otherwise
    trades match on entry time, pair and entry price, and additionally on exit
    time and price when both are closed. An open trade never matches a closed
    one. A candidate whose entry time was estimated only matches by ticket.
    """
    entry_time = _as_utc(candidate.entry_time)
    exit_time = _as_utc(candidate.exit_time)
    estimated = getattr(candidate, "entry_time_estimated", False)
    for e in existing:
        if candidate.ticket_id and e.ticket_id:
            if e.ticket_id == candidate.ticket_id:
                return True
            continue
        if estimated:
            continue
        same_entry = (
            _as_utc(e.entry_time) == entry_time
            and e.currency_pair == candidate.currency_pair
            and _same_price(e.entry_price, candidate.entry_price)
        )
        if not same_entry:
            continue
        if exit_time is not None and e.exit_time is not None:
            if _as_utc(e.exit_time) == exit_time and _same_price(e.exit_price, candidate.exit_price):
                return True
            continue
        if (exit_time is None) != (e.exit_time is None):
            continue
        return True
    return False


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

def _finish_log(session: Session, log: CsvImportLog, status: str, **fields):
    log.status = status
    log.completed_at = datetime.now(timezone.utc)
    for key, value in fields.items():
        setattr(log, key, value)
    session.add(log)
    session.commit()


def import_trades_csv(
    session: Session,
    user_id: int,
    account_id: int,
    file_name: str,
    content: bytes | str,
    batch_size: int | None = None,
) -> ImportResult:
    """Import a broker export into one account and reconcile its balance."""
    batch_size = batch_size or settings.import_batch_size

    account = session.get(TradingAccount, account_id)
    if account is None or account.user_id != user_id:
        raise AccountNotFoundError(f"Trading account {account_id} not found")

    df = read_broker_csv(content)

    log = CsvImportLog(
        user_id=user_id,
        account_id=account_id,
        file_name=file_name,
        broker_format=detect_broker_format(df.columns),
        status="processing",
        total_rows=len(df),
    )
    session.add(log)
    session.commit()
    session.refresh(log)

    parsed, rejected = map_broker_rows(df)
    result = ImportResult(log_id=log.id, total_rows=len(df), invalid=rejected)

    if not parsed:
        _finish_log(
            session, log, "failed",
            skipped_rows=rejected,
            error_details={"error": "No valid trades found after mapping"},
        )
        raise CsvImportError("No valid trades found. Please check your CSV format.")

    known: list = list(session.exec(
        select(Trade).where(Trade.user_id == user_id, Trade.account_id == account_id)
    ).all())

    fresh: list[ParsedTrade] = []
    for candidate in parsed:
        if is_duplicate(candidate, known):
            result.duplicates += 1
            continue
        fresh.append(candidate)
        known.append(candidate)

    if not fresh:
        _finish_log(
            session, log, "completed",
            imported_rows=0,
            skipped_rows=result.skipped,
            error_rows=0,
        )
        logger.info(f"CSV import {log.id}: all {result.duplicates} trades already present")
        return result

    trades = [
        prepare_trade(session, Trade(user_id=user_id, account_id=account_id, **p.trade_fields()))
        for p in fresh
    ]

    for start in range(0, len(trades), batch_size):
        batch = trades[start:start + batch_size]
        batch_no = start // batch_size + 1
        try:
            session.add_all(batch)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning(f"CSV import {log.id}: batch {batch_no} failed: {e}")
            result.errors.append(f"Batch {batch_no}: {e}")
            result.failed += len(batch)
        else:
            result.imported += len(batch)

    if result.imported:
        try:
            result.balance = reconcile_balance(session, account_id)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"CSV import {log.id}: balance reconciliation failed: {e}")
            result.errors.append(f"Balance reconciliation: {e}")
            _finish_log(
                session, log, "failed",
                imported_rows=result.imported,
                skipped_rows=result.skipped,
                error_rows=len(result.errors),
                error_details={"errors": result.errors},
            )
            raise

    _finish_log(
        session, log,
        "failed" if result.errors and not result.imported else "completed",
        imported_rows=result.imported,
        skipped_rows=result.skipped,
        error_rows=len(result.errors),
        error_details={"errors": result.errors} if result.errors else None,
    )
    logger.info(
        f"CSV import {log.id}: {result.imported} imported, "
        f"{result.duplicates} duplicates, {result.invalid} invalid, {result.failed} failed"
    )
    return result
