"""Overlap engine and the service that feeds it"""

from .matcher import find_common_assets
from .normalizer import normalize, portfolio_total_usd
from .overlap import OverlapService, PortfolioSnapshot
from .similarity import calculate_similarity, round_half_up, summarize_overlap

__all__ = [
    "normalize",
    "portfolio_total_usd",
    "find_common_assets",
    "calculate_similarity",
    "summarize_overlap",
    "round_half_up",
    "OverlapService",
    "PortfolioSnapshot",
]
