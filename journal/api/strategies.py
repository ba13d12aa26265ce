"""CRUD API for trading strategies."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import update
from sqlmodel import Session, select

from journal.database import get_session
from journal.models.strategy import Strategy
from journal.models.trade import Trade
from journal.models.user import User
from journal.schemas.strategy import StrategyCreate, StrategyUpdate, StrategyRead
from journal.api.deps import get_current_user, get_owned_strategy

router = APIRouter(prefix="/api/strategies", tags=["strategies"])


@router.get("", response_model=list[StrategyRead])
def list_strategies(
    active: bool | None = None,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    stmt = select(Strategy).where(Strategy.user_id == user.id)
    if active is not None:
        stmt = stmt.where(Strategy.is_active == active)
    return session.exec(stmt.order_by(Strategy.name)).all()


@router.post("", response_model=StrategyRead, status_code=201)
def create_strategy(
    data: StrategyCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    strategy = Strategy(**data.model_dump(), user_id=user.id)
    session.add(strategy)
    session.commit()
    session.refresh(strategy)
    return strategy


@router.get("/{strategy_id}", response_model=StrategyRead)
def get_strategy(
    strategy_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return get_owned_strategy(session, user, strategy_id)


@router.put("/{strategy_id}", response_model=StrategyRead)
def update_strategy(
    strategy_id: int,
    data: StrategyUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    strategy = get_owned_strategy(session, user, strategy_id)

    for key, value in data.model_dump(exclude_unset=True).items():
        if key == "name" and value is None:
            continue
        setattr(strategy, key, value)
    strategy.updated_at = datetime.now(timezone.utc)

    session.add(strategy)
    session.commit()
    session.refresh(strategy)
    return strategy


@router.delete("/{strategy_id}", status_code=204)
def delete_strategy(
    strategy_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Delete a strategy. Its trades stay in the journal, untagged."""
    strategy = get_owned_strategy(session, user, strategy_id)
    session.execute(
        update(Trade).where(Trade.strategy_id == strategy.id).values(strategy_id=None)
    )
    session.delete(strategy)
    session.commit()
