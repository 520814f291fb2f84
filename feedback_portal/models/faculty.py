"""Faculty model definitions."""

from sqlalchemy import Column, DateTime, String
from feedback_portal.database import Base
from feedback_portal.models.profile import _new_id, _utcnow


class Faculty(Base):
    """Represents an instructor who can be rated by students."""
    __tablename__ = "faculty"

    id = Column(String, primary_key=True, default=_new_id)
    faculty_id = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    designation = Column(String, nullable=False)
    qualification = Column(String, nullable=False)
    experience = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
