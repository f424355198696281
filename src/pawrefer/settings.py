"""Application settings and configuration."""

import sys
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "pawrefer"
    env: str = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    allowed_origins: str = "http://localhost:3000"
    base_url: str = "http://localhost:3000"

    # Database
    database_url: str = "sqlite:///./pawrefer.db"

    # Session cookie
    session_cookie_name: str = "session"
    session_expires_days: int = Field(default=5, ge=1, le=14)  # Firebase caps session cookies at 14 days

    # Rewards
    referrals_per_reward: int = Field(default=10, gt=0)

    # Firebase (managed auth)
    firebase_project_id: str | None = None
    firebase_credentials_file: str | None = None  # Path to a service account JSON
    firebase_client_email: str | None = None
    firebase_private_key: str | None = None  # PEM, "\n" escaped

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def has_firebase_credentials(self) -> bool:
        return bool(
            self.firebase_credentials_file
            or (self.firebase_client_email and self.firebase_private_key)
        )


# Global settings instance
settings = Settings()

# ── Security validation ──────────────────────────────────────────────
if settings.is_production and not settings.has_firebase_credentials:
    print(
        "\n❌  FATAL: Firebase credentials are missing.\n"
        "   Set FIREBASE_CREDENTIALS_FILE or FIREBASE_CLIENT_EMAIL + FIREBASE_PRIVATE_KEY.\n",
        file=sys.stderr,
    )
    sys.exit(1)
