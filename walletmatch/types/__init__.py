from .portfolio import (
    Asset,
    BalanceSide,
    CommonAsset,
    OverlapSummary,
    RawNetwork,
    RawTokenNode,
    SimilarityMetrics,
    TopCommonAsset,
    asset_key,
)
from .requests import FollowingRequest, FollowRequest, WalletOverlapRequest
from .social import FarcasterProfile, FollowingResponse, SuggestedFollowsResponse, SuggestedUser

__all__ = [
    "Asset",
    "BalanceSide",
    "CommonAsset",
    "OverlapSummary",
    "RawNetwork",
    "RawTokenNode",
    "SimilarityMetrics",
    "TopCommonAsset",
    "asset_key",
    "FollowingRequest",
    "FollowRequest",
    "WalletOverlapRequest",
    "FarcasterProfile",
    "FollowingResponse",
    "SuggestedFollowsResponse",
    "SuggestedUser",
]
