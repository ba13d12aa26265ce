"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from journal.config import settings
from journal.database import create_db_and_tables
from journal.utils.logging import setup_logging
from journal.api import auth, accounts, strategies, trades, imports, dashboard, settings as settings_api, system


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    create_db_and_tables()
    yield


app = FastAPI(
    title="Trade Journal",
    description="Forex trading journal with trade metrics and balance reconciliation",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(auth.router)
app.include_router(accounts.router)
app.include_router(strategies.router)
app.include_router(trades.router)
app.include_router(imports.router)
app.include_router(dashboard.router)
app.include_router(settings_api.router)
app.include_router(system.router)
