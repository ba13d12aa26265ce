"""Trade lifecycle: a two-state machine {open, closed}.

Closed-ness is decided in one place so that imports, form writes and
repair-on-read agree. A trade becomes closed as soon as it carries any exit
evidence. There is no automatic way back to open, and partial closes are
not modelled: each row is one all-or-nothing position.
"""

from enum import Enum
from typing import Any


class TradeStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


def has_exit_evidence(trade: Any) -> bool:
    """True when the trade has an exit time, an exit price or a realized P&L."""
    exit_price = getattr(trade, "exit_price", None)
    return (
        getattr(trade, "exit_time", None) is not None
        or (exit_price is not None and exit_price != 0)
        or getattr(trade, "profit_loss", None) is not None
    )


def infer_status(trade: Any) -> TradeStatus:
    """Status a trade should have given its fields.

    Exit evidence forces CLOSED; otherwise the stored status stands
    (OPEN when unset or unrecognised).
    """
    if has_exit_evidence(trade):
        return TradeStatus.CLOSED
    current = getattr(trade, "status", None)
    if current == TradeStatus.CLOSED.value:
        return TradeStatus.CLOSED
    return TradeStatus.OPEN
