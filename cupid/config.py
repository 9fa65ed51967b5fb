"""Configuration management for the Cupid match engine."""

from typing import Any, List

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./cupid.db"
    DB_MAX_RETRIES: int = 3
    DB_RETRY_BACKOFF_SECONDS: float = 0.05
    DB_STATEMENT_TIMEOUT_MS: int = 5000
    DB_POOL_TIMEOUT: int = 5

    # Redis Configuration (notification fan-out)
    REDIS_URL: str | None = None
    NOTIFICATION_CHANNEL: str = "cupid:notifications"

    # Sentry Configuration
    SENTRY_DSN: str | None = None

    # Application Configuration
    APP_NAME: str = "Cupid Match Engine"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    DEBUG: bool = Field(default=False)
    ADMIN_IDS: str | None = None

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Limits
    MAX_MESSAGE_LENGTH: int = 2000
    MAX_REPORT_REASON_LENGTH: int = 500
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    @property
    def admin_ids(self) -> List[str]:
        """Parse ADMIN_IDS into a list of user IDs."""
        if not self.ADMIN_IDS:
            return []
        return [admin_id.strip() for admin_id in self.ADMIN_IDS.split(",") if admin_id.strip()]

    @field_validator("DEBUG", mode="before")
    @classmethod
    def set_debug(cls, v: Any, info: ValidationInfo) -> bool:
        """Enable debug mode if ENVIRONMENT is development."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str) and v.strip().lower() in ("true", "1", "yes", "false", "0", "no"):
            return v.strip().lower() in ("true", "1", "yes")
        return bool(info.data.get("ENVIRONMENT", "").lower() == "development")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore")


# Create a global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Return the settings instance."""
    return settings
