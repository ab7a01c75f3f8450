from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas.academic import SubjectsResponse
from app.schemas.context import AcademicContext
from app.services.subjects import SubjectsService
from app.utils.deps import get_subjects_service
from app.utils.validators import parse_int_param

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/subjects", response_model=SubjectsResponse)
async def list_subjects(
    year: Optional[str] = None,
    branch: Optional[str] = None,
    semester: Optional[str] = None,
    regulation: Optional[str] = None,
    resource_type: Optional[str] = None,
    service: SubjectsService = Depends(get_subjects_service)
):
    context = AcademicContext(
        branch=branch,
        year=parse_int_param("year", year),
        semester=parse_int_param("semester", semester),
        regulation=regulation,
    )
    try:
        return await service.list_subjects(context, resource_type=resource_type or None)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error listing subjects for {context}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unexpected server error")
