from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas.academic import PrimeSectionResponse, RecentUpdateItem, ReminderItem, UsersCount
from app.schemas.response import APIResponse
from app.services.dashboard import DashboardService
from app.utils.deps import get_dashboard_service

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/recent-updates", response_model=List[RecentUpdateItem], response_model_exclude_none=True)
async def recent_updates(
    year: Optional[str] = None,
    branch: Optional[str] = None,
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.recent_updates(branch=branch, year=year)

@router.get("/reminders", response_model=List[ReminderItem])
async def reminders(
    status_filter: Optional[str] = Query(None, alias="status"),
    year: Optional[str] = None,
    branch: Optional[str] = None,
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.reminders(status_filter=status_filter, year=year, branch=branch)

@router.get("/users-count", response_model=APIResponse[UsersCount])
async def users_count(service: DashboardService = Depends(get_dashboard_service)):
    return APIResponse(data=await service.users_count())

@router.get("/prime-section-data", response_model=PrimeSectionResponse)
async def prime_section_data(
    year: Optional[str] = None,
    branch: Optional[str] = None,
    service: DashboardService = Depends(get_dashboard_service)
):
    try:
        return await service.prime_section(year=year, branch=branch)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during prime section data fetch: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load prime section data"
        )
