"""
Configuration module for the FinnHub MCP server.

This module provides centralized configuration management using Pydantic settings.
All configuration values can be overridden via environment variables (prefixed
with ``FINNHUB_``) or a .env file.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SEARCH_SYMBOL_ENDPOINT = "search-symbol"


class FinnHubEndpoint(BaseModel):
    """
    Named, activatable FinnHub endpoint.

    Attributes:
        name: Lookup key (e.g. "search-symbol")
        url: Path relative to the base URL (e.g. "search")
        is_active: Inactive endpoints are never resolved
        description: Free-text description
    """

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    is_active: bool = True
    description: str = ""


def _default_endpoints() -> List[FinnHubEndpoint]:
    return [
        FinnHubEndpoint(
            name=SEARCH_SYMBOL_ENDPOINT,
            url="search",
            description="Search for best-matching symbols",
        )
    ]


class FinnHubSettings(BaseSettings):
    """
    Application settings for the FinnHub MCP server.

    Attributes:
        API_KEY: FinnHub API token, sent as the X-Finnhub-Token header
        BASE_URL: FinnHub REST API base URL
        TIMEOUT_SECONDS: Per-request deadline
        ENDPOINTS: Configured endpoints (JSON list when set from the environment)
        MAX_RETRIES: Retries after the first attempt
        RETRY_BACKOFF_MULTIPLIER: Backoff is multiplier * 2^(attempt - 1) seconds
        CIRCUIT_BREAKER_THRESHOLD: Consecutive failures before the circuit opens
        CIRCUIT_BREAKER_RECOVERY_SECONDS: Time the circuit stays open
        MAX_CONNECTIONS: Connection pool size per client
        LOG_LEVEL: Logging level
        LOG_JSON: Emit JSON logs instead of human-readable ones
        SERVER_NAME: MCP server name advertised to clients
    """

    API_KEY: str = Field(default="", description="FinnHub API token")
    BASE_URL: str = Field(
        default="https://finnhub.io/api/v1",
        description="FinnHub REST API base URL",
    )
    TIMEOUT_SECONDS: int = Field(
        default=10,
        ge=1,
        le=60,
        description="Timeout for provider requests in seconds",
    )
    ENDPOINTS: List[FinnHubEndpoint] = Field(default_factory=_default_endpoints)

    # Resilience
    MAX_RETRIES: int = Field(default=3, ge=0, le=10)
    RETRY_BACKOFF_MULTIPLIER: float = Field(default=2.0, ge=0)
    CIRCUIT_BREAKER_THRESHOLD: int = Field(default=3, ge=1)
    CIRCUIT_BREAKER_RECOVERY_SECONDS: int = Field(default=30, ge=0)
    MAX_CONNECTIONS: int = Field(default=10, ge=1)

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_JSON: bool = False

    SERVER_NAME: str = "finnhub-mcp-server"

    model_config = SettingsConfigDict(
        env_prefix="FINNHUB_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("BASE_URL")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """
        Validate that the base URL is properly formatted.

        Returns:
            The validated URL without trailing slash

        Raises:
            ValueError: If URL is invalid
        """
        if not value:
            raise ValueError("Base URL cannot be empty")

        value = value.rstrip("/")

        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(f"Base URL must start with http:// or https://, got: {value}")

        return value

    def get_endpoint(self, name: str) -> Optional[FinnHubEndpoint]:
        """Return the first active endpoint with the given name."""
        return next(
            (endpoint for endpoint in self.ENDPOINTS if endpoint.is_active and endpoint.name == name),
            None,
        )


@lru_cache
def get_settings() -> FinnHubSettings:
    """Load settings once per process."""
    return FinnHubSettings()
