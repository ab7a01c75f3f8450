from typing import Any, Dict, List
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.services.resources import ResourcesService
from app.utils.deps import get_resources_service

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/resources", response_model=List[Dict[str, Any]])
async def list_resources(
    request: Request,
    service: ResourcesService = Depends(get_resources_service)
):
    params = dict(request.query_params)
    try:
        return await service.search(params)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Resources lookup failed for {params}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load resources from database"
        )
