from pydantic import BaseModel, ConfigDict, Field


class WalletOverlapRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_fid: int = Field(default=0, alias="userFid", description="Requesting user's FID")
    target_fid: int = Field(default=0, alias="targetFid", description="FID to compare against")


class FollowRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signer_uuid: str = Field(alias="signerUuid", min_length=1, description="Approved Neynar signer")
    target_fid: int = Field(alias="targetFid", gt=0, description="FID to follow")


class FollowingRequest(BaseModel):
    fid: int = Field(default=0, description="FID whose followed profiles are listed")
