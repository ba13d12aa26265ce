"""Shared fixtures: an in-memory database with one user and one account."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from journal.database import create_db_and_tables
from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.models.user import User


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def user(session) -> User:
    user = User(username="trader", hashed_password="not-a-real-hash")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def account(session, user) -> TradingAccount:
    account = TradingAccount(
        user_id=user.id,
        account_name="Main",
        initial_balance=10000.0,
        current_balance=10000.0,
    )
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


@pytest.fixture
def make_trade(session, user, account):
    """Insert a trade row as-is, bypassing status inference and metrics."""

    def _make(**fields) -> Trade:
        values = {
            "user_id": user.id,
            "account_id": account.id,
            "currency_pair": "EURUSD",
            "direction": "buy",
            "entry_time": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
            "entry_price": 1.1000,
            "position_size": 1.0,
        }
        values.update(fields)
        trade = Trade(**values)
        session.add(trade)
        session.commit()
        session.refresh(trade)
        return trade

    return _make
