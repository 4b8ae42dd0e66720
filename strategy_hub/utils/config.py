# strategy_hub/utils/config.py
"""
Application configuration.
Values come from the process environment first, then from config/.env at the repo root.
"""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from dotenv import dotenv_values

CFG_PATH = Path(__file__).resolve().parents[2] / "config" / ".env"

DEFAULT_JWT_SECRET = "change-me-in-production"
DEFAULT_GENERATION_API_URL = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_GENERATION_MODEL = "llama-3.3-70b-versatile"


def _load_file_config() -> dict:
    if not CFG_PATH.exists():
        return {}
    cfg = dotenv_values(str(CFG_PATH))
    # Drop placeholder values copied from .env.example
    return {
        key: value
        for key, value in cfg.items()
        if value and "your-" not in value.lower() and "placeholder" not in value.lower()
    }


def _env(name: str, cfg: dict, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name) or cfg.get(name) or default


@dataclass
class Settings:
    database_url: str = "sqlite:///strategy_hub.db"
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    access_token_expire_hours: int = 24 * 7
    public_base_url: str = "http://localhost:3000"
    generation_api_key: Optional[str] = None
    generation_api_url: str = DEFAULT_GENERATION_API_URL
    generation_model: str = DEFAULT_GENERATION_MODEL
    generation_timeout_seconds: float = 30.0
    redis_url: Optional[str] = None
    strategy_create_limit: int = 30
    strategy_create_window_seconds: int = 60
    allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    environment: str = "development"
    log_level: str = "INFO"
    sentry_dsn: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    from_email: str = "noreply@strategyhub.local"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        cfg = _load_file_config()
        origins = _env("ALLOWED_ORIGINS", cfg, "http://localhost:3000")
        return cls(
            database_url=_env("DATABASE_URL", cfg, "sqlite:///strategy_hub.db"),
            jwt_secret_key=_env("JWT_SECRET_KEY", cfg, DEFAULT_JWT_SECRET),
            access_token_expire_hours=int(_env("ACCESS_TOKEN_EXPIRE_HOURS", cfg, "168")),
            public_base_url=_env("PUBLIC_BASE_URL", cfg, "http://localhost:3000").rstrip("/"),
            generation_api_key=_env("GROQ_API_KEY", cfg),
            generation_api_url=_env("GENERATION_API_URL", cfg, DEFAULT_GENERATION_API_URL),
            generation_model=_env("GENERATION_MODEL", cfg, DEFAULT_GENERATION_MODEL),
            generation_timeout_seconds=float(_env("GENERATION_TIMEOUT_SECONDS", cfg, "30")),
            redis_url=_env("REDIS_URL", cfg),
            strategy_create_limit=int(_env("STRATEGY_CREATE_LIMIT", cfg, "30")),
            strategy_create_window_seconds=int(_env("STRATEGY_CREATE_WINDOW_SECONDS", cfg, "60")),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
            environment=_env("ENVIRONMENT", cfg, "development"),
            log_level=_env("LOG_LEVEL", cfg, "INFO"),
            sentry_dsn=_env("SENTRY_DSN", cfg),
            smtp_host=_env("SMTP_HOST", cfg),
            smtp_port=int(_env("SMTP_PORT", cfg, "587")),
            smtp_user=_env("SMTP_USER", cfg),
            smtp_password=_env("SMTP_PASSWORD", cfg),
            from_email=_env("FROM_EMAIL", cfg, "noreply@strategyhub.local"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings (cached)."""
    return Settings.from_env()
