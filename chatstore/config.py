"""Application configuration using pydantic-settings."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Chat Session Store"
    environment: str = "development"
    log_level: str = "info"

    # Storage
    storage_path: str = ".chatstore/state.json"
    sessions_key: str = "sessions"
    active_session_key: str = "last_active_session_id"

    # Sessions
    placeholder_name_template: str = "New chat - {date}"
    placeholder_date_format: str = "%Y-%m-%d"
    naming_min_length: int = 5
    naming_max_length: int = 25
    naming_ellipsis: str = "..."
    auto_create_policy: Literal["no_active", "empty_active"] = "no_active"

    # Responses
    responder: Literal["echo"] = "echo"
    response_delay_ms: int = 500
    response_error_template: str = "Response failed: {error}"

    # CORS
    frontend_url: str = "http://localhost:3000"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency for injecting settings."""
    return settings
