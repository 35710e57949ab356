from fastapi import APIRouter, Depends, HTTPException

from ..container import ServiceContainer, get_container
from ..types import FollowingRequest, FollowingResponse

router = APIRouter()


@router.post("/following", response_model=FollowingResponse)
async def following(
    request: FollowingRequest,
    container: ServiceContainer = Depends(get_container),
) -> FollowingResponse:
    """Profiles followed by ``fid``, with their wallet addresses"""

    if not request.fid:
        raise HTTPException(status_code=400, detail="Missing or invalid FID parameter")

    profiles = await container.overlap.following_profiles(request.fid)
    return FollowingResponse(following=profiles)
