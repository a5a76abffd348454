"""
Configuration management for the Notion to Anki sync.
Handles the Notion credentials, the AnkiConnect endpoint and run options.
"""

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from notion_anki.exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Notion
    source_api_key: str
    source_database_id: str | None = None
    status_property: str = "Status"
    status_value: str = "Ready to Import"

    # AnkiConnect
    destination_api_url: str = "http://localhost:8765"

    # Run options
    request_timeout: float = 30.0
    import_workers: int = 1

    # Logging
    debug_mode: bool = False
    log_file: str = "notion_anki_debug.log"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @property
    def uses_database(self) -> bool:
        """True when pages are selected by a database status filter."""
        return bool(self.source_database_id)


def load_settings(**overrides) -> Settings:
    """
    Load settings from the environment.

    Args:
        **overrides: Explicit values taking precedence over the environment

    Returns:
        Validated Settings

    Raises:
        ConfigError: If a required value is missing or a value is invalid
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        fields = ", ".join(
            str(err["loc"][0]).upper() for err in e.errors() if err.get("loc")
        )
        raise ConfigError(f"Invalid or missing configuration: {fields or e}") from e

    if not settings.source_api_key.strip():
        raise ConfigError("Invalid or missing configuration: SOURCE_API_KEY")
    if settings.import_workers < 1:
        raise ConfigError("IMPORT_WORKERS must be at least 1")
    return settings
