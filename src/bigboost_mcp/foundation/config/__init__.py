"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    AuthSettings,
    BigboostSettings,
    HttpSettings,
    LoggingSettings,
    RateLimitSettings,
    ServerSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "AuthSettings",
    "BigboostSettings",
    "HttpSettings",
    "LoggingSettings",
    "RateLimitSettings",
    "ServerSettings",
    "clear_settings_cache",
    "get_settings",
]
