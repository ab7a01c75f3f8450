from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.resource import Resource

class CRUDResource(CRUDBase[Resource]):
    """Study resources. Soft-deleted rows are never returned."""

    def _ordered(self, query):
        return query.order_by(self.model.unit.asc(), self.model.created_at.desc())

    def get_for_context(self, db: Session, *, branch_id: str, year_id: str, semester_id: str) -> List[Resource]:
        query = self._query(db).filter(
            self.model.branch_id == branch_id,
            self.model.year_id == year_id,
            or_(self.model.semester_id == semester_id, self.model.semester_id.is_(None))
        )
        return self._ordered(query).all()

    def search(
        self,
        db: Session,
        *,
        category: str,
        subject: str,
        unit: Optional[int] = None,
        branch_ids: Optional[List[str]] = None,
        year_id: Optional[str] = None,
        semester_id: Optional[str] = None
    ) -> List[Resource]:
        query = self._query(db).options(
            joinedload(self.model.branch),
            joinedload(self.model.year),
            joinedload(self.model.semester)
        ).filter(self.model.category == category, self.model.subject == subject)
        if unit is not None:
            query = query.filter(self.model.unit == unit)
        if branch_ids:
            query = query.filter(self.model.branch_id.in_(branch_ids))
        if year_id:
            query = query.filter(self.model.year_id == year_id)
        if semester_id:
            query = query.filter(or_(self.model.semester_id == semester_id, self.model.semester_id.is_(None)))
        return self._ordered(query).all()

    def get_subject_codes(
        self, db: Session, *, branch: Optional[str], year: Optional[int], semester: Optional[int], limit: int = 1000
    ) -> List[str]:
        query = self._query(db).with_entities(self.model.subject).filter(
            self.model.category == "notes",
            self.model.unit == 1,
            self.model.subject.isnot(None)
        )
        if branch:
            query = query.filter(self.model.branch_code == branch)
        if year:
            query = query.filter(self.model.year_number == year)
        if semester:
            query = query.filter(self.model.semester_number == semester)
        return [row.subject for row in query.limit(limit).all()]

    def get_for_subjects(
        self, db: Session, *, subjects: List[str], year_id: Optional[str] = None, branch_id: Optional[str] = None
    ) -> List[Resource]:
        if not subjects:
            return []
        query = self._query(db).filter(self.model.subject.in_(subjects))
        if year_id:
            query = query.filter(self.model.year_id == year_id)
        if branch_id:
            query = query.filter(self.model.branch_id == branch_id)
        return query.order_by(self.model.date.desc()).all()

resource = CRUDResource(Resource)
