"""
Configuration management for StockTA.

Uses Pydantic Settings for environment-based configuration with validation.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden using environment variables prefixed
    with ``STOCKTA_`` (for example ``STOCKTA_LOG_LEVEL=DEBUG``).
    """

    # Environment Configuration
    python_env: str = Field(default="development")
    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)
    log_file: Optional[str] = Field(default=None)

    # Analysis defaults
    include_wyckoff: bool = Field(default=True)
    multi_timeframe_patterns: bool = Field(default=True)
    price_history_limit: int = Field(default=0, ge=0)

    @field_validator("python_env")
    @classmethod
    def validate_python_env(cls, v):
        """Validate Python environment setting."""
        valid_envs = ["development", "testing", "production"]
        if v not in valid_envs:
            raise ValueError(f"python_env must be one of {valid_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level setting."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.python_env == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.python_env == "testing"

    model_config = SettingsConfigDict(
        env_prefix="STOCKTA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment variables."""
    global settings
    settings = Settings()
    return settings
