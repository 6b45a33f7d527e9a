"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from shared.config import settings

    print(settings.environment)
    print(settings.forecast.digest_top_n)
"""

from shared.config.settings import (
    Environment,
    ForecastSettings,
    LogLevel,
    Settings,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "ForecastSettings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
]
