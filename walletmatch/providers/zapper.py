import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..errors import UpstreamError
from ..rate_limit import RateLimiter
from ..types import FarcasterProfile
from .base import PortfolioProvider

logger = logging.getLogger(__name__)


PORTFOLIO_QUERY = """
  query PortfolioQuery($addresses: [Address!]!, $first: Int = 100) {
    portfolioV2(addresses: $addresses) {
      tokenBalances {
        totalBalanceUSD
        byToken(first: $first) {
          totalCount
          edges {
            node {
              symbol
              tokenAddress
              balance
              balanceUSD
              price
              name
              network {
                name
              }
              imgUrlV2
            }
          }
        }
      }
    }
  }
"""

FARCASTER_PROFILE_QUERY = """
  query FarcasterProfileQuery($fid: Int!) {
    farcasterProfile(fid: $fid) {
      username
      fid
      connectedAddresses
      custodyAddress
      metadata {
        displayName
        description
        imageUrl
      }
    }
  }
"""

FOLLOWING_QUERY = """
  query GetFarcasterFollowing($fid: Int!) {
    farcasterProfile(fid: $fid) {
      following(first: 100) {
        edges {
          node {
            fid
          }
        }
      }
    }
  }
"""

FOLLOWING_PROFILES_QUERY = """
  query GetFarcasterFollowingProfiles($fid: Int!, $first: Int = 100) {
    farcasterProfile(fid: $fid) {
      following(first: $first) {
        edges {
          node {
            fid
            username
            custodyAddress
            connectedAddresses
            metadata {
              displayName
              description
              imageUrl
            }
          }
        }
      }
    }
  }
"""


class ZapperClient(PortfolioProvider):
    """Zapper GraphQL provider for portfolios and Farcaster profiles"""

    name = "zapper"
    timeout_s = 30

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        page_size: Optional[int] = None,
        timeout_s: Optional[int] = None,
    ):
        self.api_key = settings.zapper_api_key if api_key is None else api_key
        self.api_url = api_url or settings.zapper_api_url
        self.rate_limiter = rate_limiter
        self.page_size = page_size or settings.portfolio_page_size
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

        try:
            await self.graphql("HealthCheck", "query HealthCheck { __typename }", {})
            return {"status": "healthy"}
        except Exception as e:
            return {"status": "error", "reason": str(e)}

    async def graphql(self, operation: str, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """POST a GraphQL query and return its ``data`` object."""
        if not self.api_key:
            raise UpstreamError(self.name, "ZAPPER_API_KEY is not set")

        if self.rate_limiter is not None:
            if not self.rate_limiter.allow(operation):
                raise self.rate_limiter.rejection(operation)
            self.rate_limiter.record(operation)

        logger.debug("Zapper GraphQL request: %s", operation)

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.post(
                    self.api_url,
                    json={"query": query, "variables": variables},
                    headers={
                        "Content-Type": "application/json",
                        "x-zapper-api-key": self.api_key,
                    },
                    timeout=self.timeout_s,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                raise UpstreamError(self.name, f"HTTP {status} for {operation}", status) from exc
            except httpx.HTTPError as exc:
                raise UpstreamError(self.name, f"{operation} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(self.name, f"{operation} returned invalid JSON") from exc

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            first = errors[0] if isinstance(errors, list) and errors else {}
            message = first.get("message", "unknown error") if isinstance(first, dict) else str(first)
            logger.error("Zapper GraphQL error for %s: %s", operation, message)
            raise UpstreamError(self.name, f"API Error: {message}")

        data = payload.get("data") if isinstance(payload, dict) else None
        return data if isinstance(data, dict) else {}

    async def get_portfolio(self, addresses: List[str]) -> Dict[str, Any]:
        if not addresses:
            raise ValueError("No addresses provided")

        logger.info("Fetching portfolio data for %d addresses", len(addresses))
        data = await self.graphql(
            "PortfolioQuery",
            PORTFOLIO_QUERY,
            {"addresses": addresses, "first": self.page_size},
        )

        portfolio = data.get("portfolioV2")
        if not portfolio:
            raise UpstreamError(self.name, "Failed to fetch portfolio data")
        return portfolio

    async def get_farcaster_profile(self, fid: int) -> FarcasterProfile:
        data = await self.graphql("FarcasterProfileQuery", FARCASTER_PROFILE_QUERY, {"fid": fid})

        profile = data.get("farcasterProfile")
        if not isinstance(profile, dict) or not profile:
            raise UpstreamError(self.name, f"No Farcaster profile found for FID: {fid}", 404)

        return _parse_profile(profile, fid)

    async def get_following(self, fid: int) -> List[int]:
        data = await self.graphql("GetFarcasterFollowing", FOLLOWING_QUERY, {"fid": fid})

        following: List[int] = []
        for node in _following_nodes(data):
            if isinstance(node.get("fid"), int):
                following.append(node["fid"])
        return following

    async def get_following_profiles(self, fid: int, first: int = 100) -> List[FarcasterProfile]:
        data = await self.graphql(
            "GetFarcasterFollowingProfiles",
            FOLLOWING_PROFILES_QUERY,
            {"fid": fid, "first": first},
        )

        profiles = [
            _parse_profile(node)
            for node in _following_nodes(data)
            if isinstance(node.get("fid"), int)
        ]
        logger.info("Found %d following profiles for FID %s", len(profiles), fid)
        return profiles


def _following_nodes(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Dict nodes under ``farcasterProfile.following.edges``; anything else is skipped."""
    profile = data.get("farcasterProfile")
    following = profile.get("following") if isinstance(profile, dict) else None
    edges = following.get("edges") if isinstance(following, dict) else None
    if not isinstance(edges, list):
        return []

    nodes = []
    for edge in edges:
        node = edge.get("node") if isinstance(edge, dict) else None
        if isinstance(node, dict):
            nodes.append(node)
    return nodes


def _parse_profile(profile: Dict[str, Any], fid: Optional[int] = None) -> FarcasterProfile:
    metadata = profile.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}

    connected = profile.get("connectedAddresses")
    if not isinstance(connected, list):
        connected = []

    username = profile.get("username")
    username = username if isinstance(username, str) else ""
    custody = profile.get("custodyAddress")

    return FarcasterProfile(
        fid=profile.get("fid") if isinstance(profile.get("fid"), int) else fid,
        username=username,
        display_name=_text(metadata.get("displayName")) or username,
        description=_text(metadata.get("description")),
        image_url=_text(metadata.get("imageUrl")),
        custody_address=custody if isinstance(custody, str) else "",
        connected_addresses=[a for a in connected if isinstance(a, str)],
    )


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""
