"""
Configuration module for the outlet metrics engine.

This module handles environment variables and settings for logging,
validation behaviour and report execution.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Application settings
    app_name: str = Field(default="Outlet Metrics Engine")
    app_version: str = Field(default="1.0.0")

    # Logging settings
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or console

    # Execution settings
    parallel_reports: bool = Field(default=True)
    max_workers: int = Field(default=4, ge=1)

    # Validation settings
    fail_fast_on_validation: bool = Field(default=True)

    # Projection settings
    round_digits: int = Field(default=2, ge=0)

    model_config = {
        "env_prefix": "OUTLET_METRICS_",
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Normalise and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Only json and console renderers are supported."""
        fmt = v.lower()
        if fmt not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return fmt


# Global settings instance
settings = Settings()
