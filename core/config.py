"""
Configuration management using Pydantic Settings
Handles environment variables and validation
"""
from functools import lru_cache

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

FORECAST_PERIODS = ["week", "month", "quarter", "year"]


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Environment
    environment: str = Field(default="development")
    debug: bool = Field(default=False)  # forces DEBUG logging

    # Application
    app_name: str = "ForecastEngine"
    app_version: str = "0.1.0"

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text

    # Monitoring
    prometheus_enabled: bool = Field(default=True)

    # Forecasting defaults
    forecast_default_period: str = Field(default="quarter")
    forecast_default_confidence: float = Field(default=0.8, ge=0.0, le=1.0)

    # Deal enrichment fan-out; 1 keeps enrichment on the calling thread
    enrichment_max_workers: int = Field(default=1, ge=1, le=64)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("forecast_default_period")
    @classmethod
    def validate_forecast_period(cls, v):
        if v not in FORECAST_PERIODS:
            raise ValueError(f"Forecast period must be one of: {FORECAST_PERIODS}")
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
