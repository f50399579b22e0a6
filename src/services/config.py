"""Application configuration from environment variables and .env file."""

import logging
from typing import Optional

from dotenv import load_dotenv
from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Pydantic loads values from:
    1. OS environment variables (at instantiation time)
    2. .env file in the working directory
    3. The defaults below
    """

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./rentledger.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Identity tokens
    jwt_secret: str = Field(default="dev-secret-key", description="HMAC key for bearer tokens")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_minutes: int = Field(default=7 * 24 * 60, description="Token lifetime (7 days)")

    # HTTP
    cors_origin: str = Field(default="*", description="Allowed CORS origin")

    # Formatting
    locale: str = Field(default="en_US", description="Babel locale for numbers and dates")
    currency_symbol: str = Field(default="$")
    contract_length_months: int = Field(default=6, description="Shown contract length")

    # Startup
    seed_demo_data: bool = Field(default=True, description="Seed demo landlord/renter/lease")

    # Logging
    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/server.log")

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver for SQLite."""
        if self.database_url.startswith("sqlite:///"):
            return self.database_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return self.database_url

    def validate_settings(self) -> None:
        """Validate settings that have no safe fallback."""
        if not self.database_url:
            raise ValueError("DATABASE_URL must not be empty")
        if not self.jwt_secret:
            raise ValueError("JWT_SECRET must not be empty")
        if self.contract_length_months < 1:
            raise ValueError("CONTRACT_LENGTH_MONTHS must be at least 1")


# Lazy loader so .env is read before the first instantiation
_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the settings instance."""
    global _settings_instance
    if _settings_instance is None:
        load_dotenv()
        _settings_instance = Settings()
        _settings_instance.validate_settings()
        if _settings_instance.jwt_secret == "dev-secret-key":
            logger.warning("JWT_SECRET not set, using development key")
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings (tests change the environment between cases)."""
    global _settings_instance
    _settings_instance = None


__all__ = ["Settings", "get_settings", "reset_settings"]
