"""Configuration management for TodoTogether."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TODOTOGETHER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Smallest amount moved around when settling (minor units, 1 = one cent)
    default_minimum: int = Field(default=1, gt=0)

    # Database path
    database_path: Path = Path.home() / ".todotogether" / "todotogether.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings(**overrides) -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings(**overrides)
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check your TODOTOGETHER_* environment "
            f"variables or .env file.\n"
            f"Error: {e}"
        ) from e
