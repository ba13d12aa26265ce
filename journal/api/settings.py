"""User preferences API."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from journal.database import get_session
from journal.models.trading_account import TradingAccount
from journal.models.user import User
from journal.models.user_settings import UserSettings
from journal.schemas.settings import Capital, Preferences, PreferencesUpdate, SettingsRead
from journal.services.trade_repair import reconcile_accounts
from journal.api.deps import get_current_user, reconciliation_failed

router = APIRouter(prefix="/api/settings", tags=["settings"])


def _derive_capital(session: Session, user: User, prefs: Preferences) -> Capital:
    accounts = session.exec(
        select(TradingAccount).where(
            TradingAccount.user_id == user.id,
            TradingAccount.is_active == True,
        )
    ).all()
    try:
        results = reconcile_accounts(session, [a.id for a in accounts])
    except SQLAlchemyError as e:
        raise reconciliation_failed(e)

    starting = sum(a.initial_balance or 0.0 for a in accounts)
    current = sum(r.new_balance for r in results)
    total_return = (current - starting) / starting * 100 if starting > 0 else 0.0
    return Capital(
        starting_capital=round(starting, 2),
        current_capital=round(current, 2),
        total_return_pct=round(total_return, 2),
        risk_per_trade_amount=round(current * prefs.risk_per_trade_pct / 100, 2),
    )


def _get_or_create(session: Session, user: User) -> UserSettings:
    row = session.exec(select(UserSettings).where(UserSettings.user_id == user.id)).first()
    if row is None:
        row = UserSettings(user_id=user.id, preferences=Preferences().model_dump())
        session.add(row)
        session.commit()
        session.refresh(row)
    return row


@router.get("", response_model=SettingsRead)
def get_settings(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    prefs = Preferences.model_validate(_get_or_create(session, user).preferences or {})
    return SettingsRead(preferences=prefs, capital=_derive_capital(session, user, prefs))


@router.put("", response_model=SettingsRead)
def update_settings(
    data: PreferencesUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    row = _get_or_create(session, user)
    merged = {**(row.preferences or {}), **data.model_dump(exclude_unset=True, exclude_none=True)}
    prefs = Preferences.model_validate(merged)

    # Reassign so the JSON column is flagged dirty
    row.preferences = prefs.model_dump()
    row.updated_at = datetime.now(timezone.utc)
    session.add(row)
    session.commit()
    session.refresh(row)
    return SettingsRead(preferences=prefs, capital=_derive_capital(session, user, prefs))
