from fastapi import APIRouter, HTTPException
from typing import List, Optional
import logging

from app.schemas.response import APIResponse
from app.core.cache import cache
from app.core.cache_config import INVALIDATION_PATTERNS

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/cache/clear")
async def clear_cache(patterns: Optional[List[str]] = None) -> APIResponse:
    """Clear cache entries by pattern or clear all"""
    try:
        if patterns:
            cleared_count = 0
            for pattern in patterns:
                cleared_count += await cache.delete_pattern(pattern)
            return APIResponse(data={"cleared": cleared_count, "patterns": patterns})

        await cache.clear()
        return APIResponse(data={"cleared": "all"})
    except Exception as e:
        logger.error(f"Failed to clear cache: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to clear cache: {str(e)}")

@router.post("/cache/invalidate/{event}")
async def invalidate_cache(event: str) -> APIResponse:
    """Invalidate the keys registered for a data-change event"""
    if event not in INVALIDATION_PATTERNS:
        raise HTTPException(status_code=404, detail=f"Unknown invalidation event: {event}")
    deleted = await cache.invalidate(event)
    return APIResponse(data={"event": event, "deleted": deleted})
