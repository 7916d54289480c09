# settings.py
"""
StreakFit API Settings.

Pydantic settings management with environment variable support.
"""

from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional, List
from urllib.parse import urlparse, urlunparse


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB - REQUIRED from environment
    DATABASE_URL: str = Field(..., description="MongoDB connection string (required)")
    DATABASE_NAME: str = Field(default="streakfit")
    DATABASE_LAZY_INIT: bool = Field(
        default=True,
        description="Connect on first request when startup connection failed"
    )

    # JWT - REQUIRED from environment (tokens are issued by the identity provider)
    SECRET_KEY: str = Field(..., description="JWT verification secret (required)")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # Environment
    ENV: str = Field(default="development")
    DEBUG: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Redis Configuration
    REDIS_URL: Optional[str] = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (redis://[:password@]host:port/db)"
    )
    REDIS_PASSWORD: Optional[str] = Field(
        default=None,
        description="Redis password for authentication"
    )

    # Sentry Error Tracking
    SENTRY_DSN: Optional[str] = None
    SENTRY_ENVIRONMENT: str = "production"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    # Sessions & streaks
    STREAK_TIMEZONE: Optional[str] = Field(
        default=None,
        description="IANA timezone for the streak day boundary (unset = server local time)"
    )
    SESSION_HISTORY_LIMIT: int = Field(default=20, ge=1)
    SESSION_START_DEDUP_SECONDS: int = Field(
        default=30,
        ge=0,
        description="Window in which a repeated start returns the open session"
    )
    ABANDONED_SESSION_HOURS: int = Field(
        default=24,
        ge=1,
        description="Open sessions older than this are reported as abandoned"
    )
    STATS_CAS_MAX_ATTEMPTS: int = Field(default=5, ge=1)

    def get_cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def redis_url_with_auth(self) -> Optional[str]:
        """Build Redis URL with authentication if password is provided."""
        if self.REDIS_URL and self.REDIS_PASSWORD:
            parsed = urlparse(self.REDIS_URL)
            netloc_with_auth = f":{self.REDIS_PASSWORD}@{parsed.netloc}"
            return urlunparse((
                parsed.scheme,
                netloc_with_auth,
                parsed.path,
                parsed.params,
                parsed.query,
                parsed.fragment
            ))
        return self.REDIS_URL

    def validate_required_settings(self) -> None:
        """Validate that required settings are configured."""
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL must be set")
        if not self.SECRET_KEY:
            raise ValueError("SECRET_KEY must be changed from default in production")
        if self.STREAK_TIMEZONE:
            from zoneinfo import ZoneInfo
            ZoneInfo(self.STREAK_TIMEZONE)

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

# Validate in production
if settings.ENV == "production":
    settings.validate_required_settings()
