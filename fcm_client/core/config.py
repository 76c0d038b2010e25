"""
Client configuration loaded from environment variables with sensible
defaults for local development.

All settings are validated on first import via Pydantic ``BaseSettings``.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the FCM client."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -- Firebase project --
    firebase_project_id: str = ""

    # -- Credentials (service account file or raw JSON; else ADC) --
    firebase_service_account_path: str = ""
    firebase_credentials_json: str = ""

    # -- Client --
    client_version: str = "0.1.0"

    # -- HTTP --
    http_timeout_seconds: float = 10.0


settings = Settings()
