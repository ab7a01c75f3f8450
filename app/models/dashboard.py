from sqlalchemy import Column, Integer, String, Date, DateTime
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.reference import generate_id

class RecentUpdate(Base):
    __tablename__ = "recent_updates"

    id = Column(String, primary_key=True, default=generate_id)
    title = Column(String, nullable=True)
    description = Column(String, nullable=True)
    date = Column(String, nullable=True)
    branch = Column(String, index=True, nullable=True)
    year = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class Exam(Base):
    __tablename__ = "exams"

    id = Column(String, primary_key=True, default=generate_id)
    subject = Column(String, nullable=False)
    exam_date = Column(Date, index=True, nullable=False)
    branch = Column(String, index=True, nullable=True)
    year = Column(Integer, nullable=True)

class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(String, primary_key=True, default=generate_id)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    due_date = Column(Date, index=True, nullable=False)
    icon_type = Column(String, nullable=True)
    status = Column(String, nullable=True)
    branch = Column(String, nullable=True)
    year = Column(Integer, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, default=generate_id)
    email = Column(String, index=True, nullable=True)
    name = Column(String, nullable=True)
    roll_number = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
