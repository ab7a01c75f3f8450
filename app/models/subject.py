from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.reference import generate_id

class Subject(Base):
    __tablename__ = "subjects"

    id = Column(String, primary_key=True, default=generate_id)
    code = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    default_units = Column(Integer, default=5)
    resource_type = Column(String, nullable=False, default="resources")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    offerings = relationship("SubjectOffering", back_populates="subject")

class SubjectOffering(Base):
    __tablename__ = "subject_offerings"

    id = Column(String, primary_key=True, default=generate_id)
    regulation = Column(String, index=True, nullable=True)
    branch = Column(String, index=True, nullable=False)
    year = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)
    subject_id = Column(String, ForeignKey("subjects.id"), nullable=False)
    display_order = Column(Integer, nullable=True)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    subject = relationship("Subject", back_populates="offerings")
