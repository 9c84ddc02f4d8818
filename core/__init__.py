"""Core utilities and configuration for the forecast engine"""
from core.config import settings
from core.exceptions import ConfigurationError, ForecastEngineError, ValidationError
from core.logging import get_logger

__all__ = [
    "settings",
    "get_logger",
    "ForecastEngineError",
    "ValidationError",
    "ConfigurationError",
]
