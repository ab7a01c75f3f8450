from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional
import re
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import PRIME_EXAM_WINDOW_DAYS, RECENT_UPDATES_LIMIT
from app.core.database import SessionFactory
from app.crud.dashboard import (
    recent_update as recent_update_crud,
    exam as exam_crud,
    reminder as reminder_crud,
    profile as profile_crud,
)
from app.crud.reference import branch as branch_crud, year as year_crud
from app.crud.resource import resource as resource_crud
from app.schemas.academic import (
    GroupedPrimeResources,
    PrimeResourceItem,
    PrimeSectionResponse,
    RecentUpdateItem,
    ReminderItem,
    UsersCount,
)
from app.services.base import SessionScopedService

logger = logging.getLogger(__name__)

PINNED_UPDATES = [
    RecentUpdateItem(
        id="static-0",
        title="Recent Updates Section",
        date="03 November 2025",
        description="Recent Updates Section lists the recent updates to the resource hub, for the current year and branch",
    ),
]

_UNIT_PATTERN = re.compile(r"unit\s+(\d+)", re.IGNORECASE)
_ASSIGNMENT_PATTERN = re.compile(r"assignment\s+(\d+)", re.IGNORECASE)

def unit_number_from_title(title: str) -> int:
    match = _UNIT_PATTERN.search(title or "") or _ASSIGNMENT_PATTERN.search(title or "")
    return int(match.group(1)) if match else 999

def prime_group_for(resource_type: str, category: str) -> str:
    """Bucket by type first, then category; unknown kinds land in notes."""
    kind = (resource_type or "").lower()
    category = (category or "").lower()
    if "note" in kind:
        return "notes"
    if "assignment" in kind:
        return "assignments"
    if "paper" in kind or "exam" in kind:
        return "papers"
    if category == "assignments":
        return "assignments"
    if category in ("papers", "exam_papers"):
        return "papers"
    return "notes"

def match_exam_subject(subject: str, name: str, description: str, exam_subjects: List[str]) -> str:
    if subject in exam_subjects:
        return subject
    lowered = subject.lower()
    for candidate in exam_subjects:
        needle = candidate.lower()
        if needle in lowered or lowered in needle or needle in name.lower() or needle in description.lower():
            return candidate
    return subject

def _database_error(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)

class DashboardService(SessionScopedService):
    def __init__(self, session_factory: SessionFactory, clock: Callable[[], datetime] = None):
        super().__init__(session_factory)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def recent_updates(self, branch: Optional[str], year: Optional[str]) -> List[RecentUpdateItem]:
        if not year or not branch:
            logger.warning("Recent updates requested without year or branch")
        year_number = int(year) if year and year.isdigit() else None

        def load(db: Session):
            rows = recent_update_crud.get_latest(
                db, branch=branch if year_number else None, year=year_number, limit=RECENT_UPDATES_LIMIT
            )
            return [
                RecentUpdateItem(
                    id=row.id,
                    title=row.title or "No Title",
                    date=row.date or "",
                    description=row.description or None,
                )
                for row in rows
            ]

        try:
            updates = await self._run(load)
        except SQLAlchemyError as e:
            logger.error(f"Recent updates query failed: {e}")
            raise _database_error("Failed to load recent updates from database")
        return [*PINNED_UPDATES, *updates]

    async def reminders(self, status_filter: Optional[str], year: Optional[str], branch: Optional[str]) -> List[ReminderItem]:
        if year and not year.isdigit():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid year parameter")

        def load(db: Session):
            rows = reminder_crud.get_active(
                db, status=(status_filter or "").strip() or None, year=int(year) if year else None, branch=branch
            )
            return [
                ReminderItem(
                    id=row.id,
                    title=row.title,
                    due_date=row.due_date.isoformat() if row.due_date else "",
                    description=row.description or "",
                    icon_type=row.icon_type or "",
                    status=row.status or "",
                )
                for row in rows
            ]

        try:
            return await self._run(load)
        except SQLAlchemyError as e:
            logger.error(f"Reminders query failed: {e}")
            raise _database_error("Failed to load reminders from database")

    async def users_count(self) -> UsersCount:
        try:
            total = await self._run(profile_crud.count)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching profiles count: {e}")
            raise _database_error("Failed to fetch users count")
        return UsersCount(total_users=total or 0, last_updated=self.clock().isoformat())

    async def prime_section(self, year: Optional[str], branch: Optional[str]) -> PrimeSectionResponse:
        if not year or not branch:
            logger.warning("Prime section requested without year or branch, results may be generic")
        today = self.clock().astimezone(timezone.utc).date()
        window_end = today + timedelta(days=PRIME_EXAM_WINDOW_DAYS)

        try:
            exams = await self._run(lambda db: exam_crud.get_in_window(db, start=today, end=window_end))
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch exams: {e}")
            raise _database_error("Failed to load exam data")

        subjects = list(dict.fromkeys(exam.subject for exam in exams if exam.subject))
        if not subjects:
            return PrimeSectionResponse(data=None, triggering_subjects=[])

        try:
            rows = await self._run(self._load_prime_resources, subjects, year, branch)
        except SQLAlchemyError as e:
            # Exams still render without their resources.
            logger.error(f"Failed to fetch prime resources: {e}")
            rows = []

        grouped: Dict[str, Dict[str, List[PrimeResourceItem]]] = {"notes": {}, "assignments": {}, "papers": {}}
        for row in rows:
            subject = match_exam_subject(row["subject"] or "General", row["name"], row["description"], subjects).upper()
            item = PrimeResourceItem(
                id=str(row["id"]),
                title=row["name"],
                url=row["url"],
                unit_number=unit_number_from_title(row["name"]),
            )
            grouped[prime_group_for(row["type"], row["category"])].setdefault(subject, []).append(item)

        for bucket in grouped.values():
            for items in bucket.values():
                items.sort(key=lambda item: item.unit_number)

        logger.info(
            f"Prime section grouped notes={len(grouped['notes'])} "
            f"assignments={len(grouped['assignments'])} papers={len(grouped['papers'])}"
        )
        has_any = any(grouped.values())
        return PrimeSectionResponse(
            data=GroupedPrimeResources(**grouped) if has_any else None,
            triggering_subjects=subjects,
        )

    def _load_prime_resources(self, db: Session, subjects: List[str], year: Optional[str], branch: Optional[str]):
        year_id = branch_id = None
        if year and year.isdigit():
            found = year_crud.get_by_batch_year(db, batch_year=int(year))
            year_id = found.id if found else None
        if branch:
            found = branch_crud.get_by_code(db, code=branch)
            branch_id = found.id if found else None

        rows = resource_crud.get_for_subjects(db, subjects=subjects, year_id=year_id, branch_id=branch_id)
        return [
            {
                "id": row.id,
                "name": row.name or "",
                "description": row.description or "",
                "type": row.type or "",
                "category": row.category or "",
                "url": row.url or "",
                "subject": row.subject or "",
            }
            for row in rows
        ]
