"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional, Union
from zoneinfo import ZoneInfo
import os

from rollcall.core.constants import ACCESS_TOKEN_EXPIRE_MINUTES as DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES

DEFAULT_SECRET_KEY = "your-secret-key-change-in-production"
DEFAULT_PARTICIPANT_KEY_SECRET = "your-participant-key-secret-change-this"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Database - Support both full URL and individual components
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_HOST: Optional[str] = None
    POSTGRES_PORT: Optional[str] = None
    POSTGRES_DB: Optional[str] = None

    # Security
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ADMIN_PASSWORD: str = "adminpass"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES

    # Shared secret mixed into every participant key derivation.
    # Read server-side only; never returned by any endpoint.
    PARTICIPANT_KEY_SECRET: str = DEFAULT_PARTICIPANT_KEY_SECRET

    # CORS - Can be a list or comma-separated string
    CORS_ORIGINS: Union[list, str] = ["*"]  # In production, specify your domain

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    # Application
    APP_TITLE: str = "Rollcall"
    APP_DESCRIPTION: str = "Conference check-in, attendance identity and admission control"
    APP_VERSION: str = "1.0.0"

    # Environment
    ENVIRONMENT: str = "development"  # development, staging, production

    # Day boundaries for daily admission caps are computed in this zone
    TIMEZONE: str = "America/New_York"

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_JSON: bool = False

    # Database Connection Pool Configuration (ignored for SQLite)
    DB_POOL_SIZE: int = 15
    DB_MAX_OVERFLOW: int = 25

    # Client IP resolution: honour X-Forwarded-For from a reverse proxy
    TRUST_FORWARDED_FOR: bool = True

    # Coarse per-route throttling (slowapi); per-client admission is always on
    RATE_LIMIT_ENABLED: bool = True

    # Admission control rules
    EMAIL_CODE_MAX_PER_DAY: int = 2
    EMAIL_CODE_COOLDOWN_MS: int = 60_000
    CODE_LOOKUP_MAX_PER_DAY: int = 30
    CODE_LOOKUP_COOLDOWN_MS: int = 3_000
    REGISTRATION_MAX_PER_DAY: int = 10
    REGISTRATION_COOLDOWN_MS: int = 10_000

    # Outgoing mail for personal-code recovery; unset host logs instead of sending
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    MAIL_FROM: str = "no-reply@localhost"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)

    def get_database_url(self) -> str:
        """
        Get database URL from either DATABASE_URL or individual components.
        Priority: DATABASE_URL > individual components > default (dev only)
        """
        if self.DATABASE_URL:
            # Handle Heroku's postgres:// URL format
            if self.DATABASE_URL.startswith("postgres://"):
                return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
            return self.DATABASE_URL

        if all([self.POSTGRES_USER, self.POSTGRES_PASSWORD,
                self.POSTGRES_HOST, self.POSTGRES_DB]):
            port = self.POSTGRES_PORT or "5432"
            return (
                f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_HOST}:{port}/{self.POSTGRES_DB}"
            )

        if self.ENVIRONMENT in ("development", "testing"):
            return "sqlite:///./rollcall.db"

        raise ValueError(
            "Database configuration missing. Provide either DATABASE_URL or "
            "all of: POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_HOST, POSTGRES_DB"
        )

    def validate_production_config(self) -> None:
        """Validate that production-critical settings are properly configured."""
        if self.ENVIRONMENT == "production":
            issues = []
            warnings = []

            if self.SECRET_KEY == DEFAULT_SECRET_KEY:
                issues.append("SECRET_KEY must be changed from default value")

            if self.PARTICIPANT_KEY_SECRET == DEFAULT_PARTICIPANT_KEY_SECRET:
                issues.append("PARTICIPANT_KEY_SECRET must be changed from default value")

            if self.ADMIN_PASSWORD == "adminpass":
                issues.append("ADMIN_PASSWORD must be changed from default value")

            if not self.ADMIN_PASSWORD.startswith("$argon2"):
                warnings.append(
                    "ADMIN_PASSWORD is not hashed. For better security, use:\n"
                    "    python -c \"from rollcall.core.security import get_password_hash; "
                    "print(get_password_hash('your-password'))\""
                )

            if self.CORS_ORIGINS == ["*"]:
                issues.append("CORS_ORIGINS should be restricted to specific domains")

            if not self.SMTP_HOST:
                warnings.append("SMTP_HOST is not set; personal codes will be logged, not mailed")

            if warnings:
                print("⚠️  Production configuration warnings:")
                for warning in warnings:
                    print(f"  - {warning}")

            if issues:
                raise ValueError(
                    "Production configuration errors:\n" +
                    "\n".join(f"  - {issue}" for issue in issues)
                )


settings = Settings()

# Validate production configuration on startup
if os.getenv("ENVIRONMENT") == "production":
    settings.validate_production_config()
