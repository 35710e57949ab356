from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..types import FarcasterProfile, SuggestedUser


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class PortfolioProvider(Provider):
    """Provider for wallet portfolios and Farcaster identity data"""

    @abstractmethod
    async def get_portfolio(self, addresses: List[str]) -> Dict[str, Any]:
        """Get the raw aggregated portfolio for a set of wallet addresses"""
        pass

    @abstractmethod
    async def get_farcaster_profile(self, fid: int) -> FarcasterProfile:
        """Get a Farcaster profile with its custody and connected addresses"""
        pass

    @abstractmethod
    async def get_following(self, fid: int) -> List[int]:
        """Get the FIDs a user follows"""
        pass

    @abstractmethod
    async def get_following_profiles(self, fid: int) -> List[FarcasterProfile]:
        """Get the profiles a user follows, with their wallet addresses"""
        pass


class SocialGraphProvider(Provider):
    """Provider for follow suggestions and follow actions"""

    @abstractmethod
    async def get_suggested_follows(self, fid: int) -> List[SuggestedUser]:
        """Get users suggested for ``fid`` to follow"""
        pass

    @abstractmethod
    async def get_signer(self, signer_uuid: str) -> Dict[str, Any]:
        """Get the status of a managed signer"""
        pass

    @abstractmethod
    async def follow_user(self, signer_uuid: str, target_fid: int) -> Dict[str, Any]:
        """Follow ``target_fid`` on behalf of the signer's owner"""
        pass
