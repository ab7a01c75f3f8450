from datetime import datetime, timezone
from typing import Callable, Optional
import time
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.schemas.academic import AcademicDataResponse, BulkResponse
from app.schemas.context import AcademicContext
from app.schemas.response import ErrorDetail, ErrorResponse, LegacyErrorMeta, LegacyErrorResponse
from app.services.academic_data import AcademicDataService
from app.utils.deps import get_academic_data_service_factory
from app.utils.validators import parse_int_param

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/bulk-academic-data", response_model=BulkResponse)
async def bulk_academic_data(
    request: Request,
    branch: Optional[str] = None,
    year: Optional[str] = None,
    semester: Optional[str] = None,
    branch_id: Optional[str] = None,
    year_id: Optional[str] = None,
    semester_id: Optional[str] = None,
    service_factory: Callable[[], AcademicDataService] = Depends(get_academic_data_service_factory)
):
    context = AcademicContext(
        branch=branch,
        year=parse_int_param("year", year),
        semester=parse_int_param("semester", semester),
    )

    try:
        service = service_factory()
        result = await service.get_bulk_data(
            branch=context.branch,
            year=context.year,
            semester=context.semester,
            branch_id=branch_id or None,
            year_id=year_id or None,
            semester_id=semester_id or None,
        )
    except Exception as e:
        logger.error(f"[bulk] Fatal error building academic data: {e}", exc_info=True)
        body = LegacyErrorResponse(
            error=ErrorDetail(code="INTERNAL_ERROR", message="Failed to fetch academic data"),
            meta=LegacyErrorMeta(timestamp=int(time.time() * 1000), path=request.url.path),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(exclude_none=True),
        )

    logger.info(
        f"[bulk] Served {context.branch}/{context.year}/{context.semester} in {result.meta.loaded_in_ms}ms"
    )
    return result

@router.get("/fetch-academic-data", response_model=AcademicDataResponse)
async def fetch_academic_data(
    request: Request,
    branch: Optional[str] = None,
    year: Optional[str] = None,
    service_factory: Callable[[], AcademicDataService] = Depends(get_academic_data_service_factory)
):
    context = AcademicContext(branch=branch, year=parse_int_param("year", year))

    try:
        service = service_factory()
        return await service.get_academic_data(branch=context.branch, year=context.year)
    except Exception as e:
        logger.error(f"Error fetching academic data: {e}", exc_info=True)
        body = ErrorResponse(
            error=ErrorDetail(code="INTERNAL_ERROR", message="Failed to fetch academic data"),
            timestamp=datetime.now(timezone.utc).isoformat(),
            path=request.url.path,
        )
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump())
