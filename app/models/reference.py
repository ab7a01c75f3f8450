import uuid
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.core.database import Base

def generate_id() -> str:
    return str(uuid.uuid4())

class Branch(Base):
    __tablename__ = "branches"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    code = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class Year(Base):
    __tablename__ = "years"

    id = Column(String, primary_key=True, default=generate_id)
    batch_year = Column(Integer, unique=True, index=True, nullable=False)
    display_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class Semester(Base):
    __tablename__ = "semesters"

    id = Column(String, primary_key=True, default=generate_id)
    semester_number = Column(Integer, nullable=False)
    year_id = Column(String, ForeignKey("years.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
