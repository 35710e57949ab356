from typing import Dict, List

from ..types import Asset, BalanceSide, CommonAsset, asset_key


def find_common_assets(assets1: List[Asset], assets2: List[Asset]) -> List[CommonAsset]:
    """Pair up assets held by both wallets, highest combined value first.

    Identity fields come from ``assets1``. A duplicate key in ``assets2``
    resolves to its last occurrence. Ties keep ``assets1`` order.
    """
    index: Dict[str, Asset] = {asset_key(asset): asset for asset in assets2}

    common: List[CommonAsset] = []
    for asset in assets1:
        match = index.get(asset_key(asset))
        if match is None:
            continue

        common.append(CommonAsset(
            symbol=asset.symbol,
            name=asset.name,
            network=asset.network,
            address=asset.address,
            img_url=asset.img_url,
            user1_balance=BalanceSide(balance=asset.balance, balance_usd=asset.balance_usd),
            user2_balance=BalanceSide(balance=match.balance, balance_usd=match.balance_usd),
            total_balance_usd=asset.balance_usd + match.balance_usd,
        ))

    # list.sort is stable
    common.sort(key=lambda c: c.total_balance_usd, reverse=True)
    return common


__all__ = ["find_common_assets"]
