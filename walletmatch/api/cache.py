from typing import Dict

from fastapi import APIRouter, Depends, Path

from ..container import ServiceContainer, get_container

router = APIRouter(prefix="/cache")


@router.delete("/users/{fid}")
async def invalidate_user(
    fid: int = Path(..., gt=0),
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, int]:
    """Forget cached profiles, portfolios and overlaps involving ``fid``"""
    return {"removed": container.overlap.invalidate_user(fid)}
