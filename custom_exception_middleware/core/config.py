"""
Configuration management for the custom exception middleware.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Logging
    log_level: str = Field(default="INFO", description="Minimum level emitted by the log sink")
    log_format: str = Field(
        default="auto",
        description="Log output format: 'json', 'text' or 'auto' (JSON unless stdout is a TTY)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            return "INFO"  # Default to INFO for invalid levels
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format, falling back to auto-detection."""
        if v.lower() not in ("auto", "json", "text"):
            return "auto"
        return v.lower()


# Global settings instance
settings = Settings()
