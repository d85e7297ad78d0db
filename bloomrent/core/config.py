"""
BloomRent Application Configuration
Loads settings from .env file using Pydantic v2 with BaseSettings
"""
from datetime import timedelta
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==================== Project Info ====================
    PROJECT_NAME: str = "BloomRent API"
    PROJECT_DESCRIPTION: str = "Landlord and tenant management: properties, units, tenants and invitations"
    VERSION: str = "1.0.0"

    # ==================== Database ====================
    DATABASE_URL: str = "sqlite:///bloomrent_local.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 3600
    SQL_ECHO: bool = False

    # ==================== Security & Authentication ====================
    SECRET_KEY: str = "change-this-secret-key-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080  # 7 days

    # ==================== Invitations ====================
    INVITE_EXPIRY_DAYS: int = 14
    INVITE_TOKEN_BYTES: int = 32

    # ==================== CORS & Frontend ====================
    FRONTEND_URL: str = "http://localhost:3000"
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "https://bloomrent.com",
    ]

    # ==================== Features ====================
    DEBUG: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    # ==================== Configuration Loading ====================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def use_psycopg_driver(cls, v: str) -> str:
        """Hosted Postgres URLs come as postgres:// or postgresql://; we run on psycopg 3"""
        for prefix in ("postgres://", "postgresql://"):
            if v.startswith(prefix):
                return "postgresql+psycopg://" + v[len(prefix):]
        return v

    # ==================== Properties ====================
    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def invite_expiry(self) -> timedelta:
        return timedelta(days=self.INVITE_EXPIRY_DAYS)

    def invite_accept_url(self, token: str) -> str:
        """Link sent to the invitee to accept an invitation"""
        return f"{self.FRONTEND_URL.rstrip('/')}/invite/accept?token={token}"


# ==================== Settings Singleton ====================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
