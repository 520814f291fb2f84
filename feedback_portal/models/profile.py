"""Student profile model definitions."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, String
from feedback_portal.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StudentProfile(Base):
    """A student imported from the college registry."""
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, default=_new_id)
    college_email = Column(String, unique=True, index=True, nullable=False)
    roll_number = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    date_of_birth = Column(Date, nullable=False)
    section = Column(String)
    gender = Column(String)
    mobile_primary = Column(String)
    mobile_secondary = Column(String)
    ssc_cgpa = Column(String)
    inter_cgpa = Column(String)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
