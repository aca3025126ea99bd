"""Application configuration using Pydantic Settings."""

import json
from datetime import timedelta
from typing import Dict, List

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "SchoolHub API"
    VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # Session tokens. SECRET_KEY signs under SECRET_KEY_ID; retired keys are
    # kept only so tokens they signed still verify until they expire.
    SECRET_KEY: str
    SECRET_KEY_ID: str = "v1"
    RETIRED_SECRET_KEYS: Dict[str, str] = {}
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Refresh tokens
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_TOKEN_ROTATION: bool = False
    REFRESH_TOKEN_SWEEP_MINUTES: int = 60

    BACKEND_CORS_ORIGINS: List[str] = []

    RATE_LIMIT_PER_MINUTE: int = 60
    LOGIN_RATE_LIMIT_PER_MINUTE: int = 10

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or console

    OTEL_SERVICE_NAME: str = "schoolhub-api"
    OTEL_TRACE_SAMPLE_RATE: float = 1.0
    OTEL_EXPORT_CONSOLE: bool = False

    REDIS_URL: str = "redis://localhost:6379"
    CELERY_QUEUE_NAME: str = "schoolhub:queue"
    CELERY_TASK_SOFT_TIME_LIMIT: int = 60
    CELERY_TASK_HARD_TIME_LIMIT: int = 120

    # Used by scripts/seed_admin.py
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str | None = None
    ADMIN_NAME: str = "Administrator"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Accept a JSON list or a comma separated string."""
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.startswith("["):
            return json.loads(v)
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        raise ValueError(v)

    @field_validator("LOG_FORMAT")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    @model_validator(mode="after")
    def check_signing_keys(self) -> "Settings":
        if not self.SECRET_KEY:
            raise ValueError("SECRET_KEY must not be empty")
        if self.SECRET_KEY_ID in self.RETIRED_SECRET_KEYS:
            raise ValueError(
                f"SECRET_KEY_ID {self.SECRET_KEY_ID!r} is also listed as retired"
            )
        return self

    @property
    def signing_keys(self) -> Dict[str, str]:
        """Key ring: every retired key plus the active one."""
        return {**self.RETIRED_SECRET_KEYS, self.SECRET_KEY_ID: self.SECRET_KEY}

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS)


# Global settings instance
settings = Settings()
