"""
Tests for the Overlap Service

Exercises profile → portfolio → overlap composition and its caching with
in-memory providers.
"""

import asyncio
from typing import Any, Dict, List

import pytest

from walletmatch.cache import TTLStore
from walletmatch.config import Settings
from walletmatch.errors import RateLimitExceeded, SignerNotApproved, UpstreamError
from walletmatch.providers.base import PortfolioProvider, SocialGraphProvider
from walletmatch.services.overlap import OverlapService
from walletmatch.types import FarcasterProfile, OverlapSummary, SuggestedUser


ETH = "0x0000000000000000000000000000000000000000"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
DEGEN = "0x4ed4e862860bed51a9570b96d89af5e1b0efefed"


def _node(address, symbol, balance_usd, network="ethereum"):
    return {
        "symbol": symbol,
        "tokenAddress": address,
        "balance": "1",
        "balanceUSD": balance_usd,
        "price": balance_usd,
        "name": symbol,
        "network": {"name": network},
        "imgUrlV2": f"https://img.example/{symbol}.png",
    }


def _portfolio(nodes, total=None):
    balances: Dict[str, Any] = {"byToken": {"edges": [{"node": n} for n in nodes]}}
    if total is not None:
        balances["totalBalanceUSD"] = total
    return {"tokenBalances": balances}


class FakePortfolioProvider(PortfolioProvider):
    name = "fake-portfolio"

    def __init__(self, profiles, portfolios, following=None, following_profiles=None):
        self.profiles = profiles
        self.portfolios = portfolios
        self.following_map = following or {}
        self.following_profiles_map = following_profiles or {}
        self.portfolio_calls: List[List[str]] = []
        self.profile_calls: List[int] = []
        self.following_calls: List[int] = []
        self.following_profile_calls: List[int] = []

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}

    async def get_portfolio(self, addresses):
        self.portfolio_calls.append(list(addresses))
        result = self.portfolios[addresses[0]]
        if isinstance(result, Exception):
            raise result
        return result

    async def get_farcaster_profile(self, fid):
        self.profile_calls.append(fid)
        return self.profiles[fid]

    async def get_following(self, fid):
        self.following_calls.append(fid)
        result = self.following_map.get(fid, [])
        if isinstance(result, Exception):
            raise result
        return result

    async def get_following_profiles(self, fid):
        self.following_profile_calls.append(fid)
        result = self.following_profiles_map.get(fid, [])
        if isinstance(result, Exception):
            raise result
        return result


class YieldingPortfolioProvider(FakePortfolioProvider):
    """Suspends before answering, as an HTTP round trip would."""

    async def get_portfolio(self, addresses):
        await asyncio.sleep(0)
        return await super().get_portfolio(addresses)

    async def get_farcaster_profile(self, fid):
        await asyncio.sleep(0)
        return await super().get_farcaster_profile(fid)


class FakeSocialProvider(SocialGraphProvider):
    name = "fake-social"

    def __init__(self, suggestions=None, signers=None):
        self.suggestions = suggestions or {}
        self.signers = signers or {}
        self.follows: List[tuple] = []

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}

    async def get_suggested_follows(self, fid):
        return self.suggestions.get(fid, [])

    async def get_signer(self, signer_uuid):
        return self.signers[signer_uuid]

    async def follow_user(self, signer_uuid, target_fid):
        self.follows.append((signer_uuid, target_fid))
        return {"success": True}


def _profile(fid, *addresses, custody=""):
    return FarcasterProfile(fid=fid, username=f"user{fid}", custody_address=custody, connected_addresses=list(addresses))


@pytest.fixture
def portfolio_provider():
    return FakePortfolioProvider(
        profiles={
            1: _profile(1, "0xuser1", custody="0xcustody1"),
            2: _profile(2, "0xuser2"),
            3: _profile(3),
            4: _profile(4, "0xuser4"),
        },
        portfolios={
            "0xcustody1": _portfolio(
                [_node(ETH, "ETH", 1000), _node(USDC, "USDC", 500)],
                total=1500,
            ),
            "0xuser2": _portfolio(
                [_node(ETH, "ETH", 3000), _node(DEGEN, "DEGEN", 100, network="base")],
                total=3100,
            ),
            "0xuser4": UpstreamError("zapper", "API Error: timeout"),
        },
        following={1: [5]},
    )


@pytest.fixture
def social_provider():
    return FakeSocialProvider(
        suggestions={
            1: [
                SuggestedUser(fid=4, username="four"),
                SuggestedUser(fid=5, username="five"),
                SuggestedUser(fid=3, username="three"),
                SuggestedUser(fid=2, username="two"),
            ]
        },
        signers={
            "approved-signer": {"status": "approved", "fid": 1},
            "pending-signer": {
                "status": "pending_approval",
                "signer_approval_url": "https://client.example/approve?token=abc",
            },
        },
    )


@pytest.fixture
def service(clock, portfolio_provider, social_provider):
    return OverlapService(TTLStore(clock=clock), portfolio_provider, social_provider, Settings())


@pytest.mark.asyncio
async def test_compute_overlap_scores_shared_holdings(service, portfolio_provider):
    summary = await service.compute_overlap(1, 2)

    # ETH shared: (1000 + 3000) / 2 = 2000 over an average total of 2300
    assert summary.overlap_percentage == 87.0
    assert summary.total_common_assets == 1
    assert [a.symbol for a in summary.top_common_assets] == ["ETH"]
    assert summary.top_common_assets[0].img_url == "https://img.example/ETH.png"
    assert portfolio_provider.portfolio_calls == [["0xcustody1", "0xuser1"], ["0xuser2"]]


@pytest.mark.asyncio
async def test_user_without_wallets_gets_zeroed_result(service, portfolio_provider):
    summary = await service.compute_overlap(1, 3)

    assert summary == OverlapSummary.empty()
    assert summary.model_dump(by_alias=True) == {
        "overlapPercentage": 0.0,
        "topCommonAssets": [],
        "totalCommonAssets": 0,
    }
    assert portfolio_provider.portfolio_calls == []


@pytest.mark.asyncio
async def test_cached_overlap_reuses_result(service, portfolio_provider, clock):
    first = await service.cached_overlap(1, 2)
    second = await service.cached_overlap(1, 2)

    assert first == second
    assert len(portfolio_provider.portfolio_calls) == 2
    assert "overlap_1_2" in service.cache.keys()

    # portfolios expire after five minutes, the overlap after a day
    clock.advance(600)
    await service.cached_overlap(1, 2)
    assert len(portfolio_provider.portfolio_calls) == 2

    clock.advance(86400)
    await service.cached_overlap(1, 2)
    assert len(portfolio_provider.portfolio_calls) == 4


@pytest.mark.asyncio
async def test_profiles_and_portfolios_are_cached_per_user(service, portfolio_provider):
    await service.compute_overlap(1, 2)
    await service.compute_overlap(2, 1)

    assert sorted(portfolio_provider.profile_calls) == [1, 2]
    assert len(portfolio_provider.portfolio_calls) == 2


@pytest.mark.asyncio
async def test_overlap_failure_propagates_and_is_not_cached(service):
    with pytest.raises(UpstreamError):
        await service.cached_overlap(1, 4)
    assert "overlap_1_4" not in service.cache.keys()


@pytest.mark.asyncio
async def test_suggested_follows_are_filtered_scored_and_sorted(service):
    result = await service.suggested_follows_with_overlap(1, limit=20)

    assert result.total_count == 3
    assert [u.fid for u in result.users] == [2, 4, 3]

    two, four, three = result.users
    assert two.overlap_calculated and two.overlap_percentage == 87.0
    assert [a.symbol for a in two.top_common_assets] == ["ETH"]
    assert three.overlap_calculated and three.overlap_percentage == 0
    assert not four.overlap_calculated
    assert "overlap_1_4" not in service.cache.keys()


@pytest.mark.asyncio
async def test_suggested_follows_respects_limit(service):
    result = await service.suggested_follows_with_overlap(1, limit=1)

    assert [u.fid for u in result.users] == [4]
    assert result.total_count == 3
    assert "suggested_follows_1_1" in service.cache.keys()


@pytest.mark.asyncio
async def test_cached_suggestions_are_not_mutated(service):
    await service.suggested_follows_with_overlap(1, limit=20)

    cached = service.cache.get("suggested_follows_1_20")
    assert all(not user.overlap_calculated for user in cached)


@pytest.mark.asyncio
async def test_following_failure_reads_as_empty(service, portfolio_provider):
    portfolio_provider.following_map[1] = UpstreamError("zapper", "boom")

    assert await service.following(1) == []
    assert "following_1" not in service.cache.keys()


@pytest.mark.asyncio
async def test_rate_limited_overlap_propagates(service, portfolio_provider):
    portfolio_provider.portfolios["0xuser2"] = RateLimitExceeded("PortfolioQuery", 300, 60, 12)

    with pytest.raises(RateLimitExceeded) as excinfo:
        await service.suggested_follows_with_overlap(1, limit=20)

    assert excinfo.value.retry_after == 12
    assert "overlap_1_2" not in service.cache.keys()


@pytest.mark.asyncio
async def test_requester_is_loaded_once_per_suggestion_batch(clock):
    profiles = {1: _profile(1, "0xuser1")}
    portfolios = {"0xuser1": _portfolio([_node(ETH, "ETH", 100)], total=100)}
    suggestions = []
    for fid in range(10, 20):
        profiles[fid] = _profile(fid, f"0xuser{fid}")
        portfolios[f"0xuser{fid}"] = _portfolio([_node(ETH, "ETH", 100)], total=100)
        suggestions.append(SuggestedUser(fid=fid, username=f"user{fid}"))

    provider = YieldingPortfolioProvider(profiles, portfolios)
    service = OverlapService(
        TTLStore(clock=clock), provider, FakeSocialProvider({1: suggestions}), Settings()
    )

    result = await service.suggested_follows_with_overlap(1, limit=20)

    assert len(result.users) == 10
    assert all(u.overlap_calculated and u.overlap_percentage == 100.0 for u in result.users)
    assert provider.profile_calls.count(1) == 1
    assert provider.portfolio_calls.count(["0xuser1"]) == 1
    assert len(provider.portfolio_calls) == 11


@pytest.mark.asyncio
async def test_requester_portfolio_failure_leaves_suggestions_unscored(service, portfolio_provider):
    portfolio_provider.portfolios["0xcustody1"] = UpstreamError("zapper", "API Error: timeout")

    result = await service.suggested_follows_with_overlap(1, limit=20)

    assert [u.fid for u in result.users] == [4, 3, 2]
    assert not any(u.overlap_calculated for u in result.users)
    assert portfolio_provider.portfolio_calls == [["0xcustody1", "0xuser1"]]
    assert not any(key.startswith("overlap_") for key in service.cache.keys())


@pytest.mark.asyncio
async def test_following_profiles_are_cached(service, portfolio_provider):
    portfolio_provider.following_profiles_map[1] = [_profile(2, "0xuser2"), _profile(5)]

    first = await service.following_profiles(1)
    second = await service.following_profiles(1)

    assert [p.fid for p in first] == [2, 5]
    assert first == second
    assert portfolio_provider.following_profile_calls == [1]
    assert "following_profiles_1" in service.cache.keys()


@pytest.mark.asyncio
async def test_following_profiles_failure_propagates(service, portfolio_provider):
    portfolio_provider.following_profiles_map[1] = UpstreamError("zapper", "boom")

    with pytest.raises(UpstreamError):
        await service.following_profiles(1)
    assert "following_profiles_1" not in service.cache.keys()


@pytest.mark.asyncio
async def test_follow_requires_approved_signer(service, social_provider):
    with pytest.raises(SignerNotApproved) as excinfo:
        await service.follow("pending-signer", 2)

    assert excinfo.value.status == "pending_approval"
    assert excinfo.value.approval_url == "https://client.example/approve?token=abc"
    assert social_provider.follows == []


@pytest.mark.asyncio
async def test_follow_invalidates_follower_lists(service, social_provider):
    await service.suggested_follows_with_overlap(1)
    await service.following_profiles(1)
    assert "following_1" in service.cache.keys()

    result = await service.follow("approved-signer", 2)

    assert result == {"success": True}
    assert social_provider.follows == [("approved-signer", 2)]
    assert "following_1" not in service.cache.keys()
    assert "following_profiles_1" not in service.cache.keys()
    assert "suggested_follows_1_20" not in service.cache.keys()
    assert "overlap_1_2" in service.cache.keys()


@pytest.mark.asyncio
async def test_invalidate_user_drops_only_that_users_entries(service):
    await service.cached_overlap(1, 2)
    await service.cached_overlap(2, 1)

    removed = service.invalidate_user(1)

    assert removed == 4  # overlap_1_2, overlap_2_1, profile_1, portfolio_1
    assert sorted(service.cache.keys()) == ["portfolio_2", "profile_2"]
