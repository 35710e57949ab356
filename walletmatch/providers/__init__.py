from .base import PortfolioProvider, Provider, SocialGraphProvider
from .neynar import NeynarClient
from .zapper import ZapperClient

__all__ = [
    "Provider",
    "PortfolioProvider",
    "SocialGraphProvider",
    "NeynarClient",
    "ZapperClient",
]
