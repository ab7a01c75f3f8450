from typing import Dict, List, Optional
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.cache_config import CACHE_KEYS, CACHE_TTL, KEY_ALL
from app.core.constants import DEFAULT_REGULATION, ResourceTypeEnum
from app.crud.resource import resource as resource_crud
from app.crud.subject import subject as subject_crud, subject_offering as subject_offering_crud
from app.schemas.context import AcademicContext
from app.services.base import SessionScopedService

logger = logging.getLogger(__name__)

class SubjectsService(SessionScopedService):
    async def list_subjects(self, context: AcademicContext, resource_type: Optional[str] = None) -> Dict[str, List[Dict]]:
        if not context.year or not context.branch:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing context (year/branch/semester)."
            )

        # Key reflects the request as sent; defaults are applied afterwards.
        key = CACHE_KEYS["subjects_route"].format(*context.key_parts(), resource_type or KEY_ALL)
        resolved = context.model_copy(update={
            "semester": context.semester or 1,
            "regulation": context.regulation or DEFAULT_REGULATION,
        })
        return await self.cache.get_or_set(
            key, CACHE_TTL["subjects_route"], lambda: self._run(self._load, resolved, resource_type)
        )

    def _load(self, db: Session, context: AcademicContext, resource_type: Optional[str]) -> Dict[str, List[Dict]]:
        try:
            offerings = subject_offering_crud.get_for_context(
                db,
                branch=context.branch,
                year=context.year,
                semester=context.semester,
                regulation=context.regulation,
            )
        except SQLAlchemyError as e:
            logger.error(f"Subject offerings query failed for {context}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"message": "Database error occurred while fetching subjects", "details": str(e)}
            )

        if not offerings:
            logger.info(f"No offerings for {context}, falling back to resource subjects")
            return {"subjects": self._from_resources(db, context)}

        type_filter = resource_type if resource_type in (ResourceTypeEnum.RESOURCES.value, ResourceTypeEnum.RECORDS.value) else None
        try:
            subjects = subject_crud.get_by_ids(db, ids=[o.subject_id for o in offerings], resource_type=type_filter)
        except SQLAlchemyError as e:
            logger.error(f"Subjects query failed for {context}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"message": "Database error occurred while fetching subjects", "details": str(e)}
            )

        by_id = {s.id: s for s in subjects}
        ordered = [by_id[o.subject_id] for o in offerings if o.subject_id in by_id]
        return {
            "subjects": [
                {"code": s.code, "name": s.name, "resource_type": s.resource_type}
                for s in ordered
            ]
        }

    def _from_resources(self, db: Session, context: AcademicContext) -> List[Dict]:
        try:
            codes = resource_crud.get_subject_codes(
                db, branch=context.branch, year=context.year, semester=context.semester
            )
        except SQLAlchemyError as e:
            logger.warning(f"Resource subject fallback failed for {context}: {e}")
            return []

        unique = list(dict.fromkeys(code.upper() for code in codes if code))
        return [{"code": code, "name": code, "resource_type": ResourceTypeEnum.RESOURCES.value} for code in unique]
