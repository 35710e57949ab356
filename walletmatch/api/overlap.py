from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..container import ServiceContainer, get_container
from ..types import OverlapSummary, SuggestedFollowsResponse, WalletOverlapRequest

router = APIRouter()


@router.post("/wallet-overlap", response_model=OverlapSummary)
async def wallet_overlap(
    request: WalletOverlapRequest,
    container: ServiceContainer = Depends(get_container),
) -> OverlapSummary:
    """Portfolio overlap between the signed-in user and a target profile"""

    if not request.user_fid or not request.target_fid:
        raise HTTPException(status_code=400, detail="Missing FID parameters")

    return await container.overlap.cached_overlap(request.user_fid, request.target_fid)


@router.get("/suggested-follows-with-overlap", response_model=SuggestedFollowsResponse)
async def suggested_follows_with_overlap(
    fid: int = Query(..., gt=0, description="Farcaster ID of the current user"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Number of suggestions to score"),
    container: ServiceContainer = Depends(get_container),
) -> SuggestedFollowsResponse:
    """Suggested follows, highest portfolio overlap first"""

    return await container.overlap.suggested_follows_with_overlap(fid, limit)
