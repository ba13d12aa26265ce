"""Shared API dependencies."""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from journal.database import get_session
from journal.models.strategy import Strategy
from journal.models.trading_account import TradingAccount
from journal.models.user import User
from journal.services.auth import decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """Validate JWT and return the current user."""
    username = decode_access_token(credentials.credentials)
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    user = session.exec(select(User).where(User.username == username)).first()
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


def get_owned_account(session: Session, user: User, account_id: int) -> TradingAccount:
    """Load an account belonging to the user, or 404."""
    account = session.get(TradingAccount, account_id)
    if not account or account.user_id != user.id:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


def reconciliation_failed(e: SQLAlchemyError) -> HTTPException:
    """Log a store failure during repair/reconcile and build the HTTP error for it."""
    logger.error(f"Balance reconciliation failed: {e}")
    return HTTPException(status_code=500, detail="Balance reconciliation failed")


def get_owned_strategy(session: Session, user: User, strategy_id: int) -> Strategy:
    """Load a strategy belonging to the user, or 404."""
    strategy = session.get(Strategy, strategy_id)
    if not strategy or strategy.user_id != user.id:
        raise HTTPException(status_code=404, detail="Strategy not found")
    return strategy
