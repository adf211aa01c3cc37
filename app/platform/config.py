from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "MaxMove Waiting List"
    ENVIRONMENT: Literal["local", "test", "staging", "production"] = "local"
    DEBUG: bool = True
    LOG_DIR: str = "logs"

    # ── Database ────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./waitlist.db"
    # create_all on startup, for local sqlite databases without alembic
    AUTO_CREATE_TABLES: bool = True

    # ── Rate limiting ───────────────────────────
    REDIS_URL: Optional[str] = None
    FORCE_IN_MEMORY_RATE_LIMITER: bool = False
    RATE_LIMIT_REQUESTS: int = 15
    RATE_LIMIT_WINDOW_SECONDS: int = 3600
    WHITELIST_IPS: List[str] = []

    # ── Referrals ───────────────────────────────
    REFERRAL_CODE_LENGTH: int = 10
    REFERRAL_CODE_MAX_ATTEMPTS: int = 5
    REFERRAL_MASK_EMAILS: bool = True
    LANDING_PAGE_URL: str = "https://maxmove.de"

    # ── Email Configuration ─────────────────────
    MAIL_MAILER: Literal["log", "relay", "smtp"] = "log"
    MAIL_HOST: str = "smtp.gmail.com"
    MAIL_PORT: int = 587
    MAIL_USERNAME: str = "your-email-id"
    MAIL_PASSWORD: str = "your-password"
    MAIL_ENCRYPTION: str = "tls"
    MAIL_FROM_ADDRESS: str = "max@maxmove.com"
    MAIL_FROM_NAME: str = "Maxmove"

    EMAIL_RELAY_URL: str = ""
    EMAIL_RELAY_API_KEY: str = ""
    EMAIL_RELAY_TIMEOUT: int = 30

    # ── JWT / Admin ─────────────────────────────
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
