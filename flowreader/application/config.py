"""Application configuration using Pydantic Settings."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.entities.pacing import PacingPreset
from ..domain.entities.preferences import ReaderPreferences


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "flowreader"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    # Default reader preferences (used until the settings source pushes its own)
    default_speed: int = 300
    default_anchor_position: float = 0.35
    default_pacing_preset: PacingPreset = PacingPreset.SMOOTH

    # Progress tracking
    checkpoint_distance: int = 5
    checkpoint_debounce_ms: int = 500
    min_session_seconds: float = 5

    # Progress storage
    progress_backend: Literal["local", "dynamodb"] = "local"
    aws_region: str = "us-west-2"
    checkpoints_table_name: str = "ReadingProgress"
    sessions_table_name: str = "ReadingSessions"
    # Directory for progress stashed at shutdown; unset disables the stash
    fallback_dir: Optional[str] = None

    def default_preferences(self) -> ReaderPreferences:
        """Reader preferences built from the configured defaults."""
        return ReaderPreferences(
            speed=self.default_speed,
            anchor_position=self.default_anchor_position,
            pacing_preset=self.default_pacing_preset,
        )


# Create a singleton instance
settings = Settings()
