from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.reference import generate_id

class Resource(Base):
    __tablename__ = "resources"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    drive_link = Column(String, nullable=True)
    url = Column(String, nullable=True)
    type = Column(String, nullable=True)
    category = Column(String, index=True, nullable=True)
    subject = Column(String, index=True, nullable=True)
    unit = Column(Integer, nullable=True)
    date = Column(String, nullable=True)
    is_pdf = Column(Boolean, default=False)
    regulation = Column(String, nullable=True)
    branch_id = Column(String, ForeignKey("branches.id"), nullable=True)
    year_id = Column(String, ForeignKey("years.id"), nullable=True)
    semester_id = Column(String, ForeignKey("semesters.id"), nullable=True)
    # Legacy context columns still populated by older uploads
    branch_code = Column("branch", String, nullable=True)
    year_number = Column("year", Integer, nullable=True)
    semester_number = Column("semester", Integer, nullable=True)
    created_by = Column(String, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    branch = relationship("Branch")
    year = relationship("Year")
    semester = relationship("Semester")
