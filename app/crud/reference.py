from sqlalchemy.orm import Session
from typing import Optional

from app.crud.base import CRUDBase
from app.models.reference import Branch, Year, Semester

class CRUDBranch(CRUDBase[Branch]):
    """Branch reference table."""

    def get_by_code(self, db: Session, *, code: str) -> Optional[Branch]:
        return db.query(self.model).filter(self.model.code == code.upper()).first()

class CRUDYear(CRUDBase[Year]):
    """Batch years."""

    def get_by_batch_year(self, db: Session, *, batch_year: int) -> Optional[Year]:
        return db.query(self.model).filter(self.model.batch_year == batch_year).first()

class CRUDSemester(CRUDBase[Semester]):
    """Semesters, scoped to a batch year."""

    def get_by_year_and_number(self, db: Session, *, year_id: str, semester_number: int) -> Optional[Semester]:
        return db.query(self.model).filter(
            self.model.year_id == year_id,
            self.model.semester_number == semester_number
        ).first()

branch = CRUDBranch(Branch)
year = CRUDYear(Year)
semester = CRUDSemester(Semester)
