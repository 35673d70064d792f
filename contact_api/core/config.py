"""
Configuration helpers for the contact manager backend.

Routers and services read the typed Settings object instead of fetching
os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    public_base_url: str
    database_url: str
    session_ttl_seconds: int
    default_alarm_lead_minutes: int
    share_code_max_attempts: int
    log_level: str
    auto_create_db: bool


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./contacts.db"),
        session_ttl_seconds=_int(os.getenv("SESSION_TTL_SECONDS", "86400"), 86400),
        default_alarm_lead_minutes=_int(os.getenv("DEFAULT_ALARM_LEAD_MINUTES", "30"), 30),
        share_code_max_attempts=_int(os.getenv("SHARE_CODE_MAX_ATTEMPTS", "100"), 100),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        auto_create_db=(os.getenv("AUTO_CREATE_DB") or "1").strip() == "1",
    )
