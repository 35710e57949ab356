"""Process-wide components, built once at startup and handed to every caller."""

from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from .cache import TTLStore
from .config import Settings, settings as default_settings
from .providers import NeynarClient, ZapperClient
from .rate_limit import RateLimiter
from .services.overlap import OverlapService


@dataclass
class ServiceContainer:
    settings: Settings
    cache: TTLStore
    neynar_limiter: RateLimiter
    zapper_limiter: RateLimiter
    zapper: ZapperClient
    neynar: NeynarClient
    overlap: OverlapService

    @classmethod
    def build(
        cls,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ServiceContainer":
        settings = settings or default_settings
        cache = TTLStore(default_ttl=settings.cache_ttl_seconds)

        def limiter(name: str) -> RateLimiter:
            return RateLimiter(
                name=name,
                default_limit=settings.rate_limit_endpoint_default,
                global_limit=settings.rate_limit_global,
                overrides=settings.rate_limit_endpoint_overrides,
                substring_overrides=settings.rate_limit_substring_overrides,
                window_seconds=settings.rate_limit_window_seconds,
                warn_ratio=settings.rate_limit_warn_ratio,
            )

        neynar_limiter = limiter("neynar")
        zapper_limiter = limiter("zapper")
        zapper = ZapperClient(
            api_key=settings.zapper_api_key,
            api_url=settings.zapper_api_url,
            rate_limiter=zapper_limiter,
            transport=transport,
            page_size=settings.portfolio_page_size,
            timeout_s=settings.request_timeout_seconds,
        )
        neynar = NeynarClient(
            api_key=settings.neynar_api_key,
            base_url=settings.neynar_api_url,
            rate_limiter=neynar_limiter,
            transport=transport,
            timeout_s=settings.request_timeout_seconds,
        )

        return cls(
            settings=settings,
            cache=cache,
            neynar_limiter=neynar_limiter,
            zapper_limiter=zapper_limiter,
            zapper=zapper,
            neynar=neynar,
            overlap=OverlapService(cache, zapper, neynar, settings),
        )

    def shutdown(self) -> None:
        self.cache.clear()
        self.neynar_limiter.reset()
        self.zapper_limiter.reset()


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the container installed at startup."""
    return request.app.state.container
