"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_EXAM_CONFIGS_PATH = Path(__file__).parent / "exam_configs.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "AeroExam"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # "development" or "production"; bulk admin actions are refused in production
    environment: str = "development"

    # Callers presenting this value in X-Admin-Token get admin capability; unset disables admin actions
    admin_token: str | None = None

    # Exam configuration source (loaded once at startup)
    exam_configs_path: str = str(DEFAULT_EXAM_CONFIGS_PATH)

    # Section control timing (seconds)
    duplicate_window_seconds: float = 2.0
    cooldown_window_seconds: float = 10.0
    auto_select_suppression_seconds: float = 10.0

    # Same recordingId presented twice inside this window is skipped
    audio_dedup_window_seconds: float = 2.0

    # CORS - stored as comma-separated string in env
    # Uses validation_alias to read from CORS_ORIGINS env var
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
