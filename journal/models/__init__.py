"""Database models."""

from journal.models.user import User
from journal.models.trading_account import TradingAccount
from journal.models.strategy import Strategy
from journal.models.trade import Trade
from journal.models.user_settings import UserSettings
from journal.models.csv_import_log import CsvImportLog

__all__ = [
    "User",
    "TradingAccount",
    "Strategy",
    "Trade",
    "UserSettings",
    "CsvImportLog",
]
