"""Application configuration via environment variables."""

from pathlib import Path
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'journal.db'}"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440  # 24 hours

    # Reconciliation
    balance_tolerance: float = 0.01  # currency units

    # CSV import
    import_batch_size: int = 100

    # Preference defaults for new users
    default_risk_per_trade_pct: float = 2.0
    default_max_daily_loss: float = 100.0
    default_leverage: float = 50.0
    default_max_loss_target: float = 800.0
    default_profit_target: float = 0.0
    default_daily_loss_target: float = 0.0

    model_config = {"env_prefix": "TJ_", "env_file": ".env"}


settings = Settings()
