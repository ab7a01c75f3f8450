from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import unquote
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.cache_config import CACHE_KEYS, CACHE_TTL
from app.core.constants import YEAR_TO_BATCH_MAPPING
from app.crud.reference import branch as branch_crud, year as year_crud, semester as semester_crud
from app.crud.resource import resource as resource_crud
from app.services.base import SessionScopedService
from app.utils.serializers import resource_with_relations

logger = logging.getLogger(__name__)

def resources_cache_key(params: Mapping[str, Any]) -> str:
    """``resources:v3:`` plus the query string with names sorted."""
    query = "&".join(f"{key}={value}" for key, value in sorted(params.items()))
    return CACHE_KEYS["resources_route"].format(query)

def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

def parse_unit(unit: Optional[str]) -> Optional[int]:
    if not unit:
        return None
    try:
        value = int(unit)
    except ValueError:
        raise _bad_request("Invalid unit number")
    if value <= 0:
        raise _bad_request("Invalid unit number")
    return value

def batch_year_for(year_number: str) -> int:
    try:
        value = int(year_number)
    except ValueError:
        raise _bad_request("Invalid year number. Expected 1-4.")
    if value not in YEAR_TO_BATCH_MAPPING:
        raise _bad_request("Invalid year number. Expected 1-4.")
    return YEAR_TO_BATCH_MAPPING[value]

class ResourcesService(SessionScopedService):
    async def search(self, params: Mapping[str, str]) -> List[Dict]:
        category = (params.get("category") or "").lower()
        encoded_subject = params.get("subject")
        if not category or not encoded_subject:
            raise _bad_request("Missing required query parameters: category, subject")

        subject = unquote(encoded_subject).strip().lower()
        unit = parse_unit(params.get("unit"))
        batch_year = batch_year_for(params["year"]) if params.get("year") and not params.get("year_id") else None

        key = resources_cache_key(params)
        return await self.cache.get_or_set(
            key,
            CACHE_TTL["resources_route"],
            lambda: self._run(self._load, dict(params), category, subject, unit, batch_year),
        )

    def _resolve_ids(self, db: Session, params: Dict[str, str], batch_year: Optional[int]):
        branch_id = params.get("branch_id")
        year_id = params.get("year_id")
        semester_id = params.get("semester_id")

        if not branch_id and params.get("branch"):
            found = branch_crud.get_by_code(db, code=params["branch"])
            branch_id = found.id if found else None

        if not year_id and batch_year is not None:
            found = year_crud.get_by_batch_year(db, batch_year=batch_year)
            year_id = found.id if found else None

        if not semester_id and params.get("semester") and year_id:
            try:
                number = int(params["semester"])
            except ValueError:
                number = None
            if number is not None:
                found = semester_crud.get_by_year_and_number(db, year_id=year_id, semester_number=number)
                semester_id = found.id if found else None

        return branch_id, year_id, semester_id

    def _load(
        self, db: Session, params: Dict[str, str], category: str, subject: str, unit: Optional[int], batch_year: Optional[int]
    ) -> List[Dict]:
        try:
            branch_id, year_id, semester_id = self._resolve_ids(db, params, batch_year)
            if not (branch_id and year_id and semester_id):
                logger.warning("Resources requested without a full branch/year/semester context")

            rows = resource_crud.search(
                db,
                category=category,
                subject=subject,
                unit=unit,
                branch_ids=[branch_id] if branch_id else None,
                year_id=year_id,
                semester_id=semester_id,
            )
        except SQLAlchemyError as e:
            logger.error(f"Resources query failed for {category}/{subject}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load resources from database"
            )

        logger.info(f"Found {len(rows)} resources for {category}/{subject}")
        return [resource_with_relations(row) for row in rows]
