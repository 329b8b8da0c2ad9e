# app/core/config.py
from __future__ import annotations

"""
# FlixCatalog — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- CSV → list helpers for CORS.
- Object storage is optional in dev so imports never crash.
- Bounded TTLs for tokens, presigned URLs and cache regions.

## Usage
    from app.core.config import settings
"""

import logging
from typing import Annotated, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - Explicit secret for JWT signing.
        - Debug detail on 500s only when `APP_DEBUG` is set.

    Notes:
        - `DATABASE_URL_OVERRIDE` wins over the POSTGRES_* parts (used by tests).
        - Storage settings are frozen into `StorageConfig` at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "FlixCatalog API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENV: Literal["development", "staging", "production", "test"] = "development"
    APP_DEBUG: bool = False
    ENABLE_DOCS: bool = True

    # ── Security / JWT ────────────────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(15, ge=1, le=24 * 60)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(30, ge=1, le=365)
    BCRYPT_ROUNDS: int = Field(12, ge=4, le=16)

    # ── Redis / Cache ─────────────────────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_CONNECT_ATTEMPTS: int = Field(3, ge=1, le=10)
    REDIS_SOCKET_TIMEOUT: float = Field(3.0, gt=0)
    REDIS_MAX_CONNECTIONS: int = Field(64, ge=1)
    CACHE_BACKEND: Literal["redis", "memory"] = "redis"
    CACHE_TTL_VIDEO: int = Field(120, ge=1)
    CACHE_TTL_VIDEOS: int = Field(120, ge=1)
    CACHE_TTL_FEATURED: int = Field(300, ge=1)

    # ── Rate limiting (slowapi syntax) ───────────────────────
    RATE_LIMIT_ENABLED: bool = True
    RATELIMIT_STORAGE_URI: Optional[str] = None  # fallback to memory:// if unset
    RATE_LIMIT_AUTH: str = "5/minute"
    RATE_LIMIT_PUBLIC: str = "100/minute"
    RATE_LIMIT_STREAMING: str = "200/minute"
    RATE_LIMIT_ADMIN: str = "60/minute"
    RATE_LIMIT_DOWNLOAD: str = "10/minute"
    RATE_LIMIT_UPLOAD: str = "10/minute"

    # ── Database (PostgreSQL) ─────────────────────────────────
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = SecretStr("postgres")
    POSTGRES_DB: str = "flixcatalog"
    DATABASE_URL_OVERRIDE: Optional[str] = None
    DB_ECHO: bool = False
    DB_CONNECT_TIMEOUT: int = Field(10, ge=1, le=120)

    # ── CORS ─────────────────────────────────────────────────
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:8000", "http://localhost:5173"]
    )

    # ── Object storage (S3-compatible) ────────────────────────
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[SecretStr] = None
    AWS_SESSION_TOKEN: Optional[SecretStr] = None
    AWS_REGION: str = "us-east-1"
    AWS_BUCKET_NAME: Optional[str] = None
    AWS_ENDPOINT_URL: Optional[str] = None
    AWS_USE_PATH_STYLE_ENDPOINT: bool = False
    S3_CONNECT_TIMEOUT: int = Field(3, ge=1, le=60)
    S3_READ_TIMEOUT: int = Field(10, ge=1, le=120)
    S3_MAX_ATTEMPTS: int = Field(1, ge=1, le=10)

    # ── Presigned URL TTLs (seconds) ──────────────────────────
    PRESIGN_MIN_TTL: int = 60
    PRESIGN_MAX_TTL: int = 3600
    PRESIGN_DEFAULT_TTL: int = 600
    PRESIGN_LIST_TTL: int = 3600
    PRESIGN_DOWNLOAD_TTL: int = 1800
    PRESIGN_UPLOAD_TTL: int = Field(1800, ge=60, le=1800)

    # ── Direct upload limits ──────────────────────────────────
    MAX_VIDEO_UPLOAD_BYTES: int = 200 * 1024 * 1024
    MAX_THUMBNAIL_UPLOAD_BYTES: int = 4 * 1024 * 1024

    # ── Maintenance ───────────────────────────────────────────
    TOKEN_CLEANUP_ENABLED: bool = True
    TOKEN_CLEANUP_INTERVAL_HOURS: int = Field(24, ge=1, le=24 * 7)

    # ── Logging ───────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_FILE: Optional[str] = None

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, v: str | List[str]):
        if isinstance(v, str):
            return _split_csv(v)
        return v

    @field_validator("AWS_BUCKET_NAME", "AWS_ENDPOINT_URL", mode="before")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        s = (v or "").strip()
        return s or None

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENV.lower() == "development"

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Async SQLAlchemy DSN."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def ratelimit_storage(self) -> str:
        """Storage URI for SlowAPI/limits; in-process memory when unset."""
        return self.RATELIMIT_STORAGE_URI or "memory://"


# Singleton instance
settings = Settings()
