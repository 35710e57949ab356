"""
Overlap Service

Resolves Farcaster users to wallets, loads their portfolios and scores how
much the holdings overlap. Every upstream result goes through the shared
TTL store so repeated card swipes do not hit the APIs again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..cache import (
    TTLStore,
    following_key,
    following_profiles_key,
    overlap_key,
    portfolio_key,
    profile_key,
    suggested_follows_key,
    user_key_pattern,
)
from ..config import Settings, settings as default_settings
from ..errors import SignerNotApproved, UpstreamError
from ..providers.base import PortfolioProvider, SocialGraphProvider
from ..types import (
    Asset,
    FarcasterProfile,
    OverlapSummary,
    SuggestedFollowsResponse,
    SuggestedUser,
)
from .matcher import find_common_assets
from .normalizer import normalize, portfolio_total_usd
from .similarity import calculate_similarity, summarize_overlap

logger = logging.getLogger(__name__)


@dataclass
class PortfolioSnapshot:
    """Normalized holdings of one user plus the upstream USD aggregate."""
    assets: List[Asset]
    total_usd: Optional[float] = None


class OverlapService:
    """Portfolio overlap between Farcaster users, memoized in a TTLStore."""

    def __init__(
        self,
        cache: TTLStore,
        portfolio_provider: PortfolioProvider,
        social_provider: SocialGraphProvider,
        settings: Optional[Settings] = None,
    ):
        self.cache = cache
        self.portfolio_provider = portfolio_provider
        self.social_provider = social_provider
        self.settings = settings or default_settings

    async def wallet_addresses(self, fid: int) -> List[str]:
        profile = await self.cache.with_cache(
            profile_key(fid),
            lambda: self.portfolio_provider.get_farcaster_profile(fid),
            self.settings.profile_cache_ttl_seconds,
        )
        return profile.wallet_addresses

    async def portfolio(self, fid: int, addresses: List[str]) -> PortfolioSnapshot:
        async def load() -> PortfolioSnapshot:
            raw = await self.portfolio_provider.get_portfolio(addresses)
            return PortfolioSnapshot(assets=normalize(raw), total_usd=portfolio_total_usd(raw))

        return await self.cache.with_cache(
            portfolio_key(fid),
            load,
            self.settings.portfolio_cache_ttl_seconds,
        )

    async def compute_overlap(self, user_fid: int, target_fid: int) -> OverlapSummary:
        """Score two users without consulting the overlap cache."""
        logger.info("Calculating wallet overlap between FIDs %s and %s", user_fid, target_fid)

        user_addresses, target_addresses = await asyncio.gather(
            self.wallet_addresses(user_fid),
            self.wallet_addresses(target_fid),
        )
        if not user_addresses or not target_addresses:
            return OverlapSummary.empty()

        user_portfolio, target_portfolio = await asyncio.gather(
            self.portfolio(user_fid, user_addresses),
            self.portfolio(target_fid, target_addresses),
        )
        logger.info(
            "Found %d assets for user and %d assets for target",
            len(user_portfolio.assets), len(target_portfolio.assets),
        )

        common = find_common_assets(user_portfolio.assets, target_portfolio.assets)
        metrics = calculate_similarity(
            user_portfolio.assets,
            target_portfolio.assets,
            common,
            user_portfolio.total_usd,
            target_portfolio.total_usd,
        )
        summary = summarize_overlap(common, metrics)

        logger.info(
            "Wallet overlap calculation complete. Overlap: %s%%, Common assets: %d",
            summary.overlap_percentage, summary.total_common_assets,
        )
        return summary

    async def cached_overlap(self, user_fid: int, target_fid: int) -> OverlapSummary:
        return await self.cache.with_cache(
            overlap_key(user_fid, target_fid),
            lambda: self.compute_overlap(user_fid, target_fid),
            self.settings.overlap_cache_ttl_seconds,
        )

    async def following(self, fid: int) -> List[int]:
        """FIDs followed by ``fid``; an upstream failure reads as nobody."""
        try:
            return await self.cache.with_cache(
                following_key(fid),
                lambda: self.portfolio_provider.get_following(fid),
                self.settings.following_cache_ttl_seconds,
            )
        except UpstreamError as exc:
            logger.warning("Error fetching following for FID %s: %s", fid, exc)
            return []

    async def following_profiles(self, fid: int) -> List[FarcasterProfile]:
        return await self.cache.with_cache(
            following_profiles_key(fid),
            lambda: self.portfolio_provider.get_following_profiles(fid),
            self.settings.following_cache_ttl_seconds,
        )

    async def _with_overlap(self, fid: int, user: SuggestedUser) -> SuggestedUser:
        try:
            overlap = await self.cached_overlap(fid, user.fid)
        except UpstreamError as exc:
            logger.warning("Error calculating overlap for FID %s: %s", user.fid, exc)
            return user

        return user.model_copy(update={
            "overlap_calculated": True,
            "overlap_percentage": overlap.overlap_percentage,
            "top_common_assets": list(overlap.top_common_assets),
        })

    async def suggested_follows_with_overlap(
        self,
        fid: int,
        limit: Optional[int] = None,
    ) -> SuggestedFollowsResponse:
        limit = limit or self.settings.suggested_follows_default_limit
        logger.info("Fetching suggested follows with overlap for FID %s, limit %d", fid, limit)

        suggested = await self.cache.with_cache(
            suggested_follows_key(fid, limit),
            lambda: self.social_provider.get_suggested_follows(fid),
            self.settings.suggested_follows_cache_ttl_seconds,
        )
        followed = set(await self.following(fid))
        not_followed = [user for user in suggested if user.fid not in followed]
        candidates = not_followed[:limit]

        # load the requester once so the concurrent overlaps below share it
        try:
            addresses = await self.wallet_addresses(fid)
            if addresses:
                await self.portfolio(fid, addresses)
        except UpstreamError as exc:
            logger.warning("Error loading portfolio for FID %s: %s", fid, exc)
            scored = list(candidates)
        else:
            scored = await asyncio.gather(
                *(self._with_overlap(fid, user) for user in candidates)
            )
        users = sorted(scored, key=lambda u: u.overlap_percentage, reverse=True)

        return SuggestedFollowsResponse(users=users, total_count=len(not_followed))

    async def follow(self, signer_uuid: str, target_fid: int) -> Dict[str, Any]:
        signer = await self.social_provider.get_signer(signer_uuid)
        status = signer.get("status")
        if status != "approved":
            raise SignerNotApproved(
                status=status or "unknown",
                approval_url=signer.get("signer_approval_url"),
            )

        result = await self.social_provider.follow_user(signer_uuid, target_fid)

        # the follower's suggestion list and following set are now stale
        owner_fid = signer.get("fid")
        if isinstance(owner_fid, int):
            self.cache.delete(following_key(owner_fid))
            self.cache.delete(following_profiles_key(owner_fid))
            self.cache.delete_pattern(rf"^suggested_follows_{owner_fid}_\d+$")

        logger.info("Followed FID %s using signer %s", target_fid, signer_uuid)
        return result

    def invalidate_user(self, fid: int) -> int:
        """Drop every cached entry that belongs to ``fid``."""
        removed = self.cache.delete_pattern(user_key_pattern(fid))
        logger.info("Invalidated %d cache entries for FID %s", removed, fid)
        return removed


__all__ = ["OverlapService", "PortfolioSnapshot"]
