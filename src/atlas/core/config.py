"""Configuration for Atlas using environment variables."""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Environment Variables:
        LLM_API_KEY: API key for the LLM provider (required for extraction)
        LLM_BASE_URL: Base URL for the LLM API (default: OpenAI)
        LLM_MODEL: Model name to use (default: gpt-4o-mini)
        ATLAS_EXTRACTION_TIMEOUT: Seconds to wait for concept extraction
        ATLAS_DEFAULT_MAX_DURATION: Default learning path budget in hours
        ATLAS_ARCHIVE_PATH: Path to SQLite graph archive (default: ./data/atlas.db)
        ATLAS_LOG_LEVEL: Logging level (default: INFO)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM Configuration
    llm_api_key: str = Field(
        default="",
        validation_alias="LLM_API_KEY",
        description="API key for the LLM provider",
    )
    llm_base_url: str = Field(
        default="https://api.openai.com/v1",
        validation_alias="LLM_BASE_URL",
        description="Base URL for the LLM API (OpenAI or compatible)",
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        validation_alias="LLM_MODEL",
        description="Model name to use",
    )

    # Engine
    extraction_timeout: float = Field(
        default=60.0,
        gt=0,
        validation_alias="ATLAS_EXTRACTION_TIMEOUT",
        description="Seconds to wait for the concept extraction call",
    )
    default_max_duration: float = Field(
        default=40.0,
        gt=0,
        validation_alias="ATLAS_DEFAULT_MAX_DURATION",
        description="Default maximum learning path duration in hours",
    )

    # Archive
    archive_path: Path = Field(
        default=Path("./data/atlas.db"),
        validation_alias="ATLAS_ARCHIVE_PATH",
        description="Path to SQLite archive of generated graphs",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        validation_alias="ATLAS_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        return getattr(logging, self.log_level.upper(), logging.INFO)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def get_llm_client():
    """Get configured OpenAI client for concept extraction.

    Returns:
        OpenAI client configured for the current provider

    Raises:
        ValueError: If LLM_API_KEY is not set
    """
    from openai import OpenAI

    settings = get_settings()
    if not settings.llm_api_key:
        raise ValueError(
            "LLM_API_KEY environment variable is required. "
            "Set it to your API key for OpenAI or a compatible provider."
        )

    return OpenAI(
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
    )
