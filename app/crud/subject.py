from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.subject import Subject, SubjectOffering

class CRUDSubjectOffering(CRUDBase[SubjectOffering]):
    """Which subjects are taught for a (regulation, branch, year, semester)."""

    def _active_for_context(self, db: Session, *, branch: str, year: int, semester: int):
        return db.query(self.model).filter(
            self.model.branch == branch,
            self.model.year == year,
            self.model.semester == semester,
            self.model.active.is_(True)
        )

    def get_regulations(self, db: Session, *, branch: str, year: int, semester: int) -> List[str]:
        rows = self._active_for_context(db, branch=branch, year=year, semester=semester) \
            .with_entities(self.model.regulation).distinct().all()
        return [row.regulation for row in rows if row.regulation]

    def get_for_context(
        self, db: Session, *, branch: str, year: int, semester: int, regulation: Optional[str] = None
    ) -> List[SubjectOffering]:
        query = self._active_for_context(db, branch=branch, year=year, semester=semester)
        if regulation:
            query = query.filter(self.model.regulation == regulation)
        return query.order_by(self.model.display_order.asc()).all()

class CRUDSubject(CRUDBase[Subject]):
    """Subject catalogue."""

    def get_by_ids(self, db: Session, *, ids: List[str], resource_type: Optional[str] = None) -> List[Subject]:
        if not ids:
            return []
        query = db.query(self.model).filter(self.model.id.in_(ids))
        if resource_type:
            query = query.filter(self.model.resource_type == resource_type)
        return query.all()

subject_offering = CRUDSubjectOffering(SubjectOffering)
subject = CRUDSubject(Subject)
