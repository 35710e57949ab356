"""
Similarity Scorer

Value-weighted and count-weighted overlap between two wallets.
"""

from __future__ import annotations

import math
from typing import List, Optional

from ..types import Asset, CommonAsset, OverlapSummary, SimilarityMetrics, TopCommonAsset


def _sum_usd(assets: List[Asset]) -> float:
    return sum(asset.balance_usd for asset in assets)


def calculate_similarity(
    assets1: List[Asset],
    assets2: List[Asset],
    common: List[CommonAsset],
    total1: Optional[float] = None,
    total2: Optional[float] = None,
) -> SimilarityMetrics:
    """
    Score how much of two portfolios is shared.

    Args:
        assets1: First wallet's normalized assets
        assets2: Second wallet's normalized assets
        common: Output of ``find_common_assets(assets1, assets2)``
        total1: Upstream USD aggregate for the first wallet; summed from
            ``assets1`` when None
        total2: Same for the second wallet

    Returns:
        SimilarityMetrics. ``value_overlap`` is 0 when both totals are 0 and
        is not capped at 100. ``asset_count_similarity`` is 0 when both
        lists are empty.
    """
    user1_total = _sum_usd(assets1) if total1 is None else total1
    user2_total = _sum_usd(assets2) if total2 is None else total2

    common_total = sum(asset.total_balance_usd / 2 for asset in common)

    average_total = (user1_total + user2_total) / 2
    value_overlap = (common_total / average_total) * 100 if average_total else 0.0

    largest = max(len(assets1), len(assets2))
    asset_count_similarity = (len(common) / largest) * 100 if largest else 0.0

    return SimilarityMetrics(
        asset_count_similarity=asset_count_similarity,
        value_overlap=value_overlap,
        user1_total_usd=user1_total,
        user2_total_usd=user2_total,
        common_assets_usd=common_total,
    )


def round_half_up(value: float, digits: int = 1) -> float:
    """Round like ``Math.round(x * 10) / 10`` rather than banker's rounding."""
    if not math.isfinite(value):
        return 0.0
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def summarize_overlap(
    common: List[CommonAsset],
    metrics: SimilarityMetrics,
    top_n: int = 3,
) -> OverlapSummary:
    """Collapse a comparison into the card-sized payload the client shows."""
    return OverlapSummary(
        overlap_percentage=round_half_up(metrics.value_overlap, 1),
        top_common_assets=[
            TopCommonAsset(
                symbol=asset.symbol,
                name=asset.name,
                img_url=asset.img_url,
                network=asset.network,
            )
            for asset in common[:top_n]
        ],
        total_common_assets=len(common),
    )


__all__ = ["calculate_similarity", "summarize_overlap", "round_half_up"]
