"""
Engine configuration using Pydantic Settings.

Loads configuration from environment variables (prefix ``GROUNDING_``)
with validation. Fixed algorithm constants live on the classes that use
them, not here.
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GroundingSettings(BaseSettings):
    """Engine settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="GROUNDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Ticket tracker conventions
    TICKET_PREFIX: str = Field(
        default="MM",
        description="Project key used for ticket citations (e.g. MM-123)"
    )
    TICKET_HOST: str = Field(
        default="mattermost.atlassian.net",
        description="Host whose /browse/<key> URLs collapse into ticket citations"
    )

    # Scoring
    THRESHOLD_PRESET: str = Field(default="default")
    CHECK_URL_ACCESSIBILITY: bool = Field(default=True)

    # Embeddings
    OPENAI_API_KEY: str = Field(default="")
    EMBEDDING_MODEL: str = Field(default="text-embedding-3-small")

    # External existence checks
    GITHUB_TOKEN: str = Field(default="")
    JIRA_BASE_URL: str = Field(default="")
    JIRA_AUTH: str = Field(
        default="",
        description="user:token pair for Jira basic auth"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the log level is a known stdlib level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return level

    @field_validator("THRESHOLD_PRESET")
    @classmethod
    def validate_preset(cls, v: str) -> str:
        """Only the three shipped presets are accepted."""
        preset = v.lower()
        if preset not in ("lenient", "default", "strict"):
            raise ValueError("THRESHOLD_PRESET must be one of lenient, default, strict")
        return preset


# Global settings instance
settings = GroundingSettings()
