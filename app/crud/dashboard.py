from datetime import date
from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.dashboard import RecentUpdate, Exam, Reminder, Profile

class CRUDRecentUpdate(CRUDBase[RecentUpdate]):
    def get_latest(
        self, db: Session, *, branch: Optional[str] = None, year: Optional[int] = None, limit: int = 10
    ) -> List[RecentUpdate]:
        query = db.query(self.model)
        if branch and year:
            query = query.filter(self.model.branch == branch, self.model.year == year)
        return query.order_by(self.model.created_at.desc()).limit(limit).all()

class CRUDExam(CRUDBase[Exam]):
    def get_in_window(
        self, db: Session, *, start: date, end: date, branch: Optional[str] = None, year: Optional[int] = None
    ) -> List[Exam]:
        query = db.query(self.model).filter(self.model.exam_date >= start, self.model.exam_date <= end)
        if branch:
            query = query.filter(self.model.branch == branch)
        if year:
            query = query.filter(self.model.year == year)
        return query.order_by(self.model.exam_date.asc()).all()

class CRUDReminder(CRUDBase[Reminder]):
    def get_upcoming(
        self, db: Session, *, today: date, branch: Optional[str] = None, year: Optional[int] = None, limit: int = 5
    ) -> List[Reminder]:
        query = self._query(db).filter(self.model.due_date >= today)
        if branch and year:
            query = query.filter(self.model.branch == branch, self.model.year == year)
        return query.order_by(self.model.due_date.asc()).limit(limit).all()

    def get_active(
        self, db: Session, *, status: Optional[str] = None, year: Optional[int] = None, branch: Optional[str] = None
    ) -> List[Reminder]:
        query = self._query(db)
        if status:
            query = query.filter(self.model.status == status)
        if year is not None:
            query = query.filter(self.model.year == year)
        if branch:
            query = query.filter(self.model.branch == branch)
        return query.order_by(self.model.due_date.asc()).all()

class CRUDProfile(CRUDBase[Profile]):
    pass

recent_update = CRUDRecentUpdate(RecentUpdate)
exam = CRUDExam(Exam)
reminder = CRUDReminder(Reminder)
profile = CRUDProfile(Profile)
