from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Asset(_WireModel):
    type: Literal["token"] = Field(default="token", description="Asset kind")
    network: str = Field(description="Chain identifier (e.g. ethereum, base)")
    address: str = Field(description="Token contract address, lowercased")
    symbol: str = Field(default="", description="Token symbol; display only")
    name: str = Field(default="Unknown Token", description="Token name; display only")
    balance: str = Field(default="0", description="Raw token quantity as a decimal string")
    balance_usd: float = Field(default=0.0, alias="balanceUSD", description="USD value at fetch time")
    price: float = Field(default=0.0, description="USD unit price")
    img_url: str = Field(default="", alias="imgUrl", description="Token logo URL")

    @property
    def key(self) -> str:
        return asset_key(self)


def asset_key(asset: Asset) -> str:
    """Identity of an asset: ``network:address``."""
    return f"{asset.network}:{asset.address}"


class BalanceSide(_WireModel):
    balance: str = Field(description="Raw token quantity")
    balance_usd: float = Field(alias="balanceUSD", description="USD value")


class CommonAsset(_WireModel):
    type: Literal["token"] = "token"
    symbol: str
    name: str
    network: str
    address: str
    img_url: str = Field(default="", alias="imgUrl")
    user1_balance: BalanceSide = Field(alias="user1Balance")
    user2_balance: BalanceSide = Field(alias="user2Balance")
    total_balance_usd: float = Field(alias="totalBalanceUSD")

    @property
    def key(self) -> str:
        return f"{self.network}:{self.address}"


class SimilarityMetrics(_WireModel):
    asset_count_similarity: float = Field(alias="assetCountSimilarity")
    value_overlap: float = Field(alias="valueOverlap")
    user1_total_usd: float = Field(alias="user1TotalUSD")
    user2_total_usd: float = Field(alias="user2TotalUSD")
    common_assets_usd: float = Field(alias="commonAssetsUSD")


class TopCommonAsset(_WireModel):
    symbol: str
    name: str
    img_url: str = Field(default="", alias="imgUrl")
    network: str


class OverlapSummary(_WireModel):
    overlap_percentage: float = Field(default=0.0, alias="overlapPercentage")
    top_common_assets: List[TopCommonAsset] = Field(default_factory=list, alias="topCommonAssets")
    total_common_assets: int = Field(default=0, alias="totalCommonAssets")

    @classmethod
    def empty(cls) -> "OverlapSummary":
        return cls(overlap_percentage=0.0, top_common_assets=[], total_common_assets=0)


def _lenient_float(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number == number else 0.0


class RawNetwork(BaseModel):
    """``node.network`` as returned by the portfolio API."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _text_only(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None


class RawTokenNode(BaseModel):
    """One ``byToken.edges[].node`` entry, every field optional."""

    model_config = ConfigDict(extra="ignore")

    symbol: Optional[str] = None
    token_address: Optional[str] = Field(default=None, alias="tokenAddress")
    balance: Optional[str] = None
    balance_usd: float = Field(default=0.0, alias="balanceUSD")
    price: float = 0.0
    name: Optional[str] = None
    network: Optional[RawNetwork] = None
    img_url_v2: Optional[str] = Field(default=None, alias="imgUrlV2")

    @field_validator("symbol", "token_address", "name", "img_url_v2", mode="before")
    @classmethod
    def _text_only(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("balance", mode="before")
    @classmethod
    def _balance_text(cls, value: Any) -> Optional[str]:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            return str(value)
        return value if isinstance(value, str) else None

    @field_validator("balance_usd", "price", mode="before")
    @classmethod
    def _number(cls, value: Any) -> float:
        return _lenient_float(value)

    @field_validator("network", mode="before")
    @classmethod
    def _network_mapping(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None
