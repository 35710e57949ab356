from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .portfolio import TopCommonAsset


class FarcasterProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fid: int
    username: str = ""
    display_name: str = Field(default="", alias="displayName")
    description: str = ""
    image_url: str = Field(default="", alias="imageUrl")
    custody_address: str = Field(default="", alias="custodyAddress")
    connected_addresses: List[str] = Field(default_factory=list, alias="connectedAddresses")

    @property
    def wallet_addresses(self) -> List[str]:
        """Custody address first, then verified addresses; blanks dropped."""
        return [addr for addr in [self.custody_address, *self.connected_addresses] if addr]


class SuggestedUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fid: int
    username: str = ""
    display_name: str = Field(default="", alias="displayName")
    image_url: str = Field(default="", alias="imageUrl")
    bio: str = ""
    overlap_calculated: bool = Field(default=False, alias="overlapCalculated")
    overlap_percentage: float = Field(default=0.0, alias="overlapPercentage")
    top_common_assets: List[TopCommonAsset] = Field(default_factory=list, alias="topCommonAssets")


class SuggestedFollowsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    users: List[SuggestedUser] = Field(default_factory=list)
    total_count: int = Field(default=0, alias="totalCount")


class FollowingResponse(BaseModel):
    following: List[FarcasterProfile] = Field(default_factory=list)
