import asyncio
import re
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.cache import CacheManager
from app.core.cache_config import CACHE_KEYS, CACHE_TTL, KEY_ALL
from app.core.constants import RECENT_UPDATES_LIMIT, UPCOMING_EXAM_WINDOW_DAYS, UPCOMING_REMINDERS_LIMIT
from app.core.database import SessionFactory
from app.crud.reference import branch as branch_crud, year as year_crud, semester as semester_crud
from app.crud.subject import subject as subject_crud, subject_offering as subject_offering_crud
from app.crud.resource import resource as resource_crud
from app.crud.dashboard import (
    recent_update as recent_update_crud,
    exam as exam_crud,
    reminder as reminder_crud,
    profile as profile_crud,
)
from app.services.base import SessionScopedService
from app.schemas.academic import (
    AcademicDataResponse,
    BulkResponse,
    DynamicData,
    DynamicSummary,
    ResponseMeta,
    StaticData,
    Timings,
)
from app.utils.serializers import (
    branch_row,
    year_row,
    semester_row,
    subject_row,
    resource_row,
    recent_update_row,
    exam_row,
    reminder_row,
)

logger = logging.getLogger(__name__)

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def now_ms() -> int:
    return int(time.time() * 1000)

def regulation_number(regulation: str) -> int:
    digits = re.sub(r"\D", "", regulation or "")
    return int(digits) if digits else 0

def resolve_regulation(regulations: Iterable[str]) -> Optional[str]:
    """Latest regulation by its numeric part (R23 beats R20); first seen wins ties."""
    best, best_number = None, -1
    for regulation in regulations:
        if not regulation:
            continue
        number = regulation_number(regulation)
        if number > best_number:
            best, best_number = regulation, number
    return best

def _display_order_key(order: Optional[int], subject_id: str):
    if order is None:
        return (0, 0, subject_id)
    return (1, order, subject_id)

def empty_static() -> Dict[str, list]:
    return {"branches": [], "years": [], "semesters": []}

def empty_dynamic() -> Dict[str, Any]:
    return {"recentUpdates": [], "upcomingExams": [], "upcomingReminders": [], "usersCount": 0}

class AcademicDataService(SessionScopedService):
    """Cached section producers and the bulk fan-out that joins them."""

    def __init__(
        self,
        session_factory: SessionFactory,
        cache: Optional[CacheManager] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(session_factory, cache)
        self.clock = clock

    def today(self) -> date:
        return self.clock().astimezone(timezone.utc).date()

    # Subjects

    async def get_subjects(self, branch: Optional[str], year: Optional[int], semester: Optional[int]) -> List[Dict]:
        if not (branch and year and semester):
            return []
        key = CACHE_KEYS["subjects"].format(branch, year, semester)
        return await self.cache.get_or_set(
            key, CACHE_TTL["subjects"], lambda: self._run(self._load_subjects, branch, year, semester)
        )

    def _load_subjects(self, db: Session, branch: str, year: int, semester: int) -> List[Dict]:
        regulations = subject_offering_crud.get_regulations(db, branch=branch, year=year, semester=semester)
        regulation = resolve_regulation(regulations)

        offerings = subject_offering_crud.get_for_context(
            db, branch=branch, year=year, semester=semester, regulation=regulation
        )
        if not offerings:
            return []

        order = {offering.subject_id: offering.display_order for offering in offerings}
        subjects = subject_crud.get_by_ids(db, ids=list(order))
        subjects.sort(key=lambda s: _display_order_key(order.get(s.id), s.id))
        logger.debug(f"Resolved {len(subjects)} subjects for {branch}/{year}/{semester} under {regulation}")
        return [subject_row(s) for s in subjects]

    # Static reference data

    async def get_static_data(self) -> Dict[str, list]:
        return await self.cache.get_or_set(
            CACHE_KEYS["static_data"], CACHE_TTL["static_data"], self._load_static_data
        )

    async def _load_static_data(self) -> Dict[str, list]:
        branches, years, semesters = await asyncio.gather(
            self._run(lambda db: [branch_row(b) for b in branch_crud.get_multi(db)]),
            self._run(lambda db: [year_row(y) for y in year_crud.get_multi(db)]),
            self._run(lambda db: [semester_row(s) for s in semester_crud.get_multi(db)]),
        )
        return {"branches": branches, "years": years, "semesters": semesters}

    # Dynamic, time-sensitive data

    async def get_dynamic_data(self, branch: Optional[str], year: Optional[int]) -> Dict[str, Any]:
        key = CACHE_KEYS["dynamic_data"].format(branch or KEY_ALL, year or KEY_ALL)
        return await self.cache.get_or_set(
            key, CACHE_TTL["dynamic_data"], lambda: self._load_dynamic_data(branch, year)
        )

    async def _load_dynamic_data(self, branch: Optional[str], year: Optional[int]) -> Dict[str, Any]:
        today = self.today()
        window_end = today + timedelta(days=UPCOMING_EXAM_WINDOW_DAYS)

        recent_updates, upcoming_exams, upcoming_reminders, users_count = await asyncio.gather(
            self._run(lambda db: [
                recent_update_row(u)
                for u in recent_update_crud.get_latest(db, branch=branch, year=year, limit=RECENT_UPDATES_LIMIT)
            ]),
            self._run(lambda db: [
                exam_row(e)
                for e in exam_crud.get_in_window(db, start=today, end=window_end, branch=branch, year=year)
            ]),
            self._run(lambda db: [
                reminder_row(r)
                for r in reminder_crud.get_upcoming(db, today=today, branch=branch, year=year, limit=UPCOMING_REMINDERS_LIMIT)
            ]),
            self._run(lambda db: profile_crud.count(db)),
        )
        return {
            "recentUpdates": recent_updates,
            "upcomingExams": upcoming_exams,
            "upcomingReminders": upcoming_reminders,
            "usersCount": users_count or 0,
        }

    # Resources grouped by subject and category

    async def get_grouped_resources(
        self, branch_id: Optional[str], year_id: Optional[str], semester_id: Optional[str]
    ) -> Dict[str, Dict[str, List[Dict]]]:
        if not (branch_id and year_id and semester_id):
            return {}
        key = CACHE_KEYS["grouped_resources"].format(branch_id, year_id, semester_id)
        return await self.cache.get_or_set(
            key,
            CACHE_TTL["grouped_resources"],
            lambda: self._run(self._load_grouped_resources, branch_id, year_id, semester_id),
        )

    def _load_grouped_resources(self, db: Session, branch_id: str, year_id: str, semester_id: str):
        grouped: Dict[str, Dict[str, List[Dict]]] = {}
        rows = resource_crud.get_for_context(db, branch_id=branch_id, year_id=year_id, semester_id=semester_id)
        for row in rows:
            by_category = grouped.setdefault(row.subject or "General", {})
            by_category.setdefault(row.category or "notes", []).append(resource_row(row))
        return grouped

    # Fan-out

    async def _timed_section(
        self, name: str, producer: Callable[[], Awaitable[Any]], default: Callable[[], Any], timings: Dict[str, int]
    ) -> Any:
        started = time.perf_counter()
        try:
            return await producer()
        except Exception as e:
            logger.error(f"[bulk] {name} section failed, serving empty result: {e}", exc_info=True)
            return default()
        finally:
            timings[f"{name}_ms"] = int((time.perf_counter() - started) * 1000)

    async def get_bulk_data(
        self,
        branch: Optional[str] = None,
        year: Optional[int] = None,
        semester: Optional[int] = None,
        branch_id: Optional[str] = None,
        year_id: Optional[str] = None,
        semester_id: Optional[str] = None,
    ) -> BulkResponse:
        started = time.perf_counter()
        timings = {"profile_ms": 0}

        subjects, static, dynamic, resources = await asyncio.gather(
            self._timed_section("subjects", lambda: self.get_subjects(branch, year, semester), list, timings),
            self._timed_section("static", self.get_static_data, empty_static, timings),
            self._timed_section("dynamic", lambda: self.get_dynamic_data(branch, year), empty_dynamic, timings),
            self._timed_section(
                "resources", lambda: self.get_grouped_resources(branch_id, year_id, semester_id), dict, timings
            ),
        )

        return BulkResponse(
            subjects=subjects or [],
            static=StaticData.model_validate(static or empty_static()),
            dynamic=DynamicData.model_validate(dynamic or empty_dynamic()),
            resources=resources or {},
            timestamp=now_ms(),
            meta=ResponseMeta(
                loaded_in_ms=int((time.perf_counter() - started) * 1000),
                timings=Timings(**timings),
            ),
        )

    async def get_academic_data(self, branch: Optional[str] = None, year: Optional[int] = None) -> AcademicDataResponse:
        started = time.perf_counter()
        timings = {"profile_ms": 0}

        static, dynamic = await asyncio.gather(
            self._timed_section("static", self.get_static_data, empty_static, timings),
            self._timed_section("dynamic", lambda: self.get_dynamic_data(branch, year), empty_dynamic, timings),
        )

        return AcademicDataResponse(
            static=StaticData.model_validate(static or empty_static()),
            dynamic=DynamicSummary.model_validate(dynamic or empty_dynamic()),
            timestamp=now_ms(),
            meta=ResponseMeta(
                loaded_in_ms=int((time.perf_counter() - started) * 1000),
                timings=Timings(**timings),
            ),
        )
