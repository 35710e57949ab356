import os

from pathlib import Path
from typing import Any, Dict

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the browser-side Neynar key name used by older deployments."""

        super().model_post_init(__context)

        if not self.neynar_api_key:
            fallback = os.getenv("NEXT_PUBLIC_NEYNAR_API_KEY")
            if fallback:
                object.__setattr__(self, "neynar_api_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # External API Keys
    zapper_api_key: str = Field(default="", description="Zapper GraphQL API key")
    neynar_api_key: str = Field(
        default="",
        description="Neynar API key",
        validation_alias=AliasChoices("neynar_api_key", "NEYNAR_API_KEY"),
    )

    # Upstream endpoints
    zapper_api_url: str = Field(
        default="https://public.zapper.xyz/graphql",
        description="Zapper GraphQL endpoint",
    )
    neynar_api_url: str = Field(
        default="https://api.neynar.com/v2/farcaster",
        description="Neynar Farcaster API base URL",
    )
    request_timeout_seconds: int = Field(default=30, description="Upstream request timeout")
    portfolio_page_size: int = Field(
        default=100,
        ge=1,
        le=500,
        description="Number of token balances requested per portfolio",
    )

    # Cache Settings
    cache_ttl_seconds: int = Field(default=300, description="Default cache TTL in seconds")
    overlap_cache_ttl_seconds: int = Field(default=86400, description="TTL for computed overlaps")
    following_cache_ttl_seconds: int = Field(default=3600, description="TTL for following lists")
    suggested_follows_cache_ttl_seconds: int = Field(
        default=1800,
        description="TTL for suggested follow lists",
    )
    profile_cache_ttl_seconds: int = Field(default=3600, description="TTL for Farcaster profiles")
    portfolio_cache_ttl_seconds: int = Field(default=300, description="TTL for normalized portfolios")

    # Rate Limiting
    rate_limit_window_seconds: int = Field(default=60, ge=1, description="Rate window length")
    rate_limit_endpoint_default: int = Field(default=300, ge=1, description="Requests per endpoint per window")
    rate_limit_global: int = Field(default=500, ge=1, description="Requests per window across all endpoints")
    rate_limit_endpoint_overrides: Dict[str, int] = Field(
        default_factory=lambda: {"/frame/validate": 5000},
        description="Per-endpoint thresholds matched on the exact path",
    )
    rate_limit_substring_overrides: Dict[str, int] = Field(
        default_factory=lambda: {"/signer": 3000},
        description="Per-endpoint thresholds matched anywhere in the path",
    )
    rate_limit_warn_ratio: float = Field(
        default=0.9,
        gt=0,
        le=1,
        description="Fraction of a threshold that triggers a warning",
    )

    # Suggestions
    suggested_follows_default_limit: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Default number of suggested users to score",
    )

    @property
    def has_zapper_key(self) -> bool:
        return bool(self.zapper_api_key)

    @property
    def has_neynar_key(self) -> bool:
        return bool(self.neynar_api_key)


# Global settings instance
settings = Settings()
