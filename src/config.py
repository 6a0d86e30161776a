"""Configuration management using Pydantic Settings.

Priority order:
1. Environment variables (highest priority, for Cloud Run)
2. .env file (for local development fallback)
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Configuration is loaded from:
    1. Environment variables (highest priority)
    2. .env file (local development fallback)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Google Cloud
    google_project_id: str
    google_location: str = "us-central1"
    environment: str = "dev"

    # Vertex AI
    llm_model: str = "gemini-2.0-flash"
    llm_temperature: float = 0.9

    # Orchestration
    status_rotation_interval_seconds: float = 2.5
    generation_timeout_seconds: float = 60.0  # 0 disables the bound
    export_timeout_seconds: float = 30.0  # 0 disables the bound

    # Stat bar animation
    stat_animation_delay_ms: int = 300
    stat_animation_duration_ms: int = 1000

    # Image export
    export_font_path: str | None = None  # Japanese font; system CJK fonts searched when unset
    export_scale: int = 2

    @field_validator("status_rotation_interval_seconds")
    @classmethod
    def rotation_interval_positive(cls, value: float) -> float:
        """Reject a rotation interval that would spin the event loop."""
        if value <= 0:
            raise ValueError("status_rotation_interval_seconds must be positive")
        return value

    @property
    def is_production(self) -> bool:
        """Whether the app runs in the production environment."""
        return self.environment == "prod"

    @property
    def generation_timeout(self) -> float | None:
        """Generation timeout in seconds, or None when unbounded."""
        return self.generation_timeout_seconds or None

    @property
    def export_timeout(self) -> float | None:
        """Export timeout in seconds, or None when unbounded."""
        return self.export_timeout_seconds or None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Default settings instance
settings = get_settings()
