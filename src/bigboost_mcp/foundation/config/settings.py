"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from bigboost_mcp.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.rate_limit.max_requests
    5000
    >>> settings.http.timeout
    30.0

    # Or with environment variables:
    # BIGBOOST_ACCESS_TOKEN=...
    # BIGBOOST_TOKEN_ID=...
    # BIGBOOST_RATELIMIT_MAX_REQUESTS=1000
    # BIGBOOST_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import (
    Field,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    computed_field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://plataforma.bigdatacorp.com.br"


class AuthSettings(BaseSettings):
    """Provider credentials. Both values are mandatory."""

    model_config = SettingsConfigDict(
        env_prefix="BIGBOOST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    access_token: SecretStr = Field(..., description="Bigboost AccessToken header")
    token_id: SecretStr = Field(..., description="Bigboost TokenId header")

    @field_validator("access_token", "token_id")
    @classmethod
    def _not_blank(cls, v: SecretStr, info) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError(f"{info.field_name} é obrigatório")
        return v

    def headers(self) -> dict[str, str]:
        """Authentication headers expected by the provider."""
        return {
            "AccessToken": self.access_token.get_secret_value(),
            "TokenId": self.token_id.get_secret_value(),
        }


class RateLimitSettings(BaseSettings):
    """Token bucket configuration (5000 requests per 5 minutes per IP)."""

    model_config = SettingsConfigDict(
        env_prefix="BIGBOOST_RATELIMIT_",
        extra="ignore",
    )

    max_requests: PositiveInt = Field(default=5000, description="Max requests per window")
    window_ms: PositiveInt = Field(default=5 * 60 * 1000, description="Window length in milliseconds")

    @computed_field
    @property
    def requests_per_second(self) -> int:
        """Sustained rate the bucket spreads requests at."""
        return int(self.max_requests // (self.window_ms / 1000))


class HttpSettings(BaseSettings):
    """HTTP client configuration for the provider API."""

    model_config = SettingsConfigDict(
        env_prefix="BIGBOOST_HTTP_",
        extra="ignore",
    )

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Provider base URL")
    timeout: PositiveFloat = Field(default=30.0, description="Request timeout in seconds")
    user_agent: str = "bigboost-mcp/1.0"

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BIGBOOST_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"
    file: Path | None = Field(default=None, description="Optional JSON-lines log file")

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ServerSettings(BaseSettings):
    """Protocol server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BIGBOOST_SERVER_",
        extra="ignore",
    )

    name: str = "mcp-server-bigboost"
    transport: Literal["stdio", "http", "sse", "streamable-http"] = "stdio"
    host: str = "127.0.0.1"
    port: PositiveInt = 3000


class BigboostSettings(BaseSettings):
    """Root settings for the Bigboost MCP server.

    Loads configuration from environment variables and an optional .env
    file. Credentials are validated eagerly, so constructing this object
    is the fail-fast point for a misconfigured process.

    Example environment variables:
        BIGBOOST_ACCESS_TOKEN=...
        BIGBOOST_TOKEN_ID=...
        BIGBOOST_HTTP_TIMEOUT=60
        BIGBOOST_LOG_FORMAT=json
        BIGBOOST_SERVER_TRANSPORT=http
    """

    model_config = SettingsConfigDict(
        env_prefix="BIGBOOST_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    auth: AuthSettings = Field(default_factory=AuthSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


@lru_cache(maxsize=1)
def get_settings() -> BigboostSettings:
    """Get the global settings instance (cached).

    Raises:
        pydantic.ValidationError: when credentials are missing or empty
    """
    return BigboostSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
