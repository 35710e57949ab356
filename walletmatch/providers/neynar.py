import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..errors import UpstreamError
from ..rate_limit import RateLimiter
from ..types import SuggestedUser
from .base import SocialGraphProvider

logger = logging.getLogger(__name__)


class NeynarClient(SocialGraphProvider):
    """Neynar REST provider for the Farcaster social graph"""

    name = "neynar"
    timeout_s = 15

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_s: Optional[int] = None,
    ):
        self.api_key = settings.neynar_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.neynar_api_url).rstrip("/")
        self.rate_limiter = rate_limiter or RateLimiter(name=self.name)
        self._transport = transport
        if timeout_s is not None:
            self.timeout_s = timeout_s

    async def ready(self) -> bool:
        return bool(self.api_key)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {
                "status": "unavailable",
                "reason": "API key not configured"
            }
        return {"status": "healthy"}

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Call ``endpoint`` (path relative to the base URL) under the rate limiter."""
        if not self.rate_limiter.allow(endpoint):
            logger.warning("[Neynar] Rate limit exceeded for %s", endpoint)
            raise self.rate_limiter.rejection(endpoint)

        if not self.api_key:
            raise UpstreamError(self.name, "NEYNAR_API_KEY is not set")

        headers = {"accept": "application/json", "api_key": self.api_key}
        if json is not None:
            headers["content-type"] = "application/json"

        self.rate_limiter.record(endpoint)
        logger.info("[Neynar] Request: %s %s", method, endpoint)

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{self.base_url}{endpoint}",
                    params=params,
                    json=json,
                    headers=headers,
                    timeout=self.timeout_s,
                )
            except httpx.HTTPError as exc:
                raise UpstreamError(self.name, f"{method} {endpoint} failed: {exc}") from exc

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("message") if isinstance(body, dict) else None
            raise UpstreamError(
                self.name,
                message or f"Neynar API error: {response.status_code} {response.reason_phrase}",
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(self.name, f"{endpoint} returned invalid JSON") from exc
        return payload if isinstance(payload, dict) else {}

    async def get_suggested_follows(self, fid: int) -> List[SuggestedUser]:
        data = await self.request("/following/suggested", params={"fid": fid})

        users: List[SuggestedUser] = []
        for user in data.get("users") or []:
            if not isinstance(user, dict) or not isinstance(user.get("fid"), int):
                continue
            profile = user.get("profile") or {}
            username = user.get("username") or ""
            users.append(SuggestedUser(
                fid=user["fid"],
                username=username,
                display_name=user.get("display_name") or username,
                image_url=user.get("pfp_url") or "",
                bio=((profile.get("bio") or {}).get("text")) or "",
            ))
        return users

    async def get_signer(self, signer_uuid: str) -> Dict[str, Any]:
        return await self.request("/signer", params={"signer_uuid": signer_uuid})

    async def follow_user(self, signer_uuid: str, target_fid: int) -> Dict[str, Any]:
        return await self.request(
            "/user/follow",
            method="POST",
            json={"signer_uuid": signer_uuid, "target_fids": [target_fid]},
        )
