"""SQLModel database engine and session management."""

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from journal.config import settings

logger = logging.getLogger(__name__)

# SQLite needs check_same_thread=False; PostgreSQL does not
connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.database_url,
    echo=False,
    connect_args=connect_args,
)

# Columns added after the first trade schema shipped. Rows created before
# they existed get NULLs and are filled in by repair-on-read.
_TRADE_LATE_COLUMNS = {
    "pips": "FLOAT",
    "risk_reward_ratio": "FLOAT",
    "r_multiple": "FLOAT",
    "risk_amount": "FLOAT",
    "ticket_id": "VARCHAR",
    "strategy_id": "INTEGER",
}


def _run_migrations(bind: Engine):
    """Run lightweight schema migrations for columns added to existing tables."""
    from sqlalchemy import text

    inspector = inspect(bind)

    if "trade" not in inspector.get_table_names():
        return

    columns = {col["name"] for col in inspector.get_columns("trade")}
    missing = [name for name in _TRADE_LATE_COLUMNS if name not in columns]
    if not missing:
        return

    with bind.connect() as conn:
        for name in missing:
            logger.info(f"Migrating: adding trade.{name}")
            conn.execute(
                text(f"ALTER TABLE trade ADD COLUMN {name} {_TRADE_LATE_COLUMNS[name]}")
            )
        conn.commit()


def create_db_and_tables(bind: Engine | None = None):
    """Create all tables. Called on startup."""
    import journal.models  # noqa: F401  (registers tables on the metadata)

    bind = bind or engine
    SQLModel.metadata.create_all(bind)
    _run_migrations(bind)


def get_session() -> Session:
    """Dependency that yields a database session."""
    with Session(engine) as session:
        yield session
