from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..container import ServiceContainer, get_container
from ..types import FollowRequest

router = APIRouter()


@router.post("/follow")
async def follow(
    request: FollowRequest,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    result = await container.overlap.follow(request.signer_uuid, request.target_fid)
    return {
        **result,
        "success": True,
        "message": f"Successfully followed user with FID {request.target_fid}",
    }
