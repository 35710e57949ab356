"""
Portfolio Normalizer

Turns a raw ``portfolioV2`` GraphQL payload into a flat list of ``Asset``
records. Upstream schema drift degrades to a shorter list, never an error.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from ..types import Asset, RawTokenNode

logger = logging.getLogger(__name__)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _token_edges(raw_portfolio: Any) -> List[Any]:
    by_token = _mapping(_mapping(_mapping(raw_portfolio).get("tokenBalances")).get("byToken"))
    edges = by_token.get("edges")
    return edges if isinstance(edges, list) else []


def _to_asset(node: Any) -> Optional[Asset]:
    if not isinstance(node, Mapping):
        return None

    try:
        raw = RawTokenNode.model_validate(dict(node))
    except ValidationError:
        return None

    if not raw.token_address:
        return None

    symbol = raw.symbol or ""
    return Asset(
        address=raw.token_address.lower(),
        network=(raw.network.name if raw.network else None) or "unknown",
        symbol=symbol,
        name=raw.name or symbol or "Unknown Token",
        balance=raw.balance or "0",
        balance_usd=raw.balance_usd,
        price=raw.price,
        img_url=raw.img_url_v2 or "",
    )


def normalize(raw_portfolio: Any) -> List[Asset]:
    """Extract token assets from a portfolio response.

    Edges without a node or without a token address are skipped.
    """
    assets: List[Asset] = []
    edges = _token_edges(raw_portfolio)

    for edge in edges:
        asset = _to_asset(_mapping(edge).get("node"))
        if asset is not None:
            assets.append(asset)

    skipped = len(edges) - len(assets)
    if skipped:
        logger.debug("Skipped %d malformed token entries", skipped)
    return assets


def portfolio_total_usd(raw_portfolio: Any) -> Optional[float]:
    """The portfolio API's own USD aggregate, if it reported a usable number."""
    total = _mapping(_mapping(raw_portfolio).get("tokenBalances")).get("totalBalanceUSD")
    if isinstance(total, bool) or not isinstance(total, (int, float, str)):
        return None
    try:
        value = float(total)
    except ValueError:
        return None
    return value if value == value else None


__all__ = ["normalize", "portfolio_total_usd"]
