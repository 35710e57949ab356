from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..container import ServiceContainer, get_container

router = APIRouter()


@router.get("/healthz")
async def health_check(container: ServiceContainer = Depends(get_container)) -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    provider_status = {
        "zapper": await container.zapper.health_check(),
        "neynar": await container.neynar.health_check(),
    }

    all_healthy = all(
        status["status"] in ["healthy", "unavailable"]
        for status in provider_status.values()
    )

    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] == "healthy"
    )

    return {
        "status": "healthy" if all_healthy and available_providers > 0 else "degraded",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status),
        "cache": container.cache.stats(),
        "rate_limits": {
            "zapper": container.zapper_limiter.snapshot(),
            "neynar": container.neynar_limiter.snapshot(),
        },
    }
