"""Shared constants for metrics, reconciliation and CSV import."""

# Pip size convention: JPY-quoted pairs move in 0.01, everything else in 0.0001
JPY_PIP_SIZE = 0.01
DEFAULT_PIP_SIZE = 0.0001

# Two prices closer than this are the same price when deduplicating imports
PRICE_MATCH_EPSILON = 0.00001

# Header aliases for broker CSV exports (matched case-insensitively)
CSV_COLUMN_ALIASES: dict[str, list[str]] = {
    "ticket_id": ["Ticket", "Order"],
    "symbol": ["Symbol", "Item", "Instrument"],
    "type": ["Type", "Trade Side"],
    "open_time": ["Open Time", "OpenTime", "Entry Time", "Time"],
    "price": ["Price", "Open Price", "OpenPrice", "Entry Price"],
    "volume": ["Volume", "Lots", "Size"],
    "stop_loss": ["S / L", "S/L", "Stop Loss", "SL"],
    "take_profit": ["T / P", "T/P", "Take Profit", "TP"],
    "close_time": ["Close Time", "CloseTime", "Exit Time"],
    # MT4 statements repeat "Price" for the close; pandas renames it "Price.1"
    "close_price": ["Close Price", "ClosePrice", "Exit Price", "Price.1"],
    "profit": ["Profit", "P&L", "PnL", "P/L", "PL"],
}

MT4_TIME_FORMAT = "%Y.%m.%d %H:%M:%S"

# Analytics buckets: (label, lower bound inclusive, upper bound exclusive)
R_MULTIPLE_BUCKETS: list[tuple[str, float, float]] = [
    ("< 1R", float("-inf"), 1.0),
    ("1-2R", 1.0, 2.0),
    ("2-3R", 2.0, 3.0),
    ("3-5R", 3.0, 5.0),
    ("5R+", 5.0, float("inf")),
]

# Risk % buckets: (label, lower bound exclusive, upper bound inclusive)
RISK_PCT_BUCKETS: list[tuple[str, float, float]] = [
    ("0-1%", float("-inf"), 1.0),
    ("1-2%", 1.0, 2.0),
    ("2-3%", 2.0, 3.0),
    ("3-5%", 3.0, 5.0),
    ("5%+", 5.0, float("inf")),
]

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
