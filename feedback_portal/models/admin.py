"""Admin account model definitions."""

from sqlalchemy import Column, DateTime, String
from feedback_portal.database import Base
from feedback_portal.models.profile import _new_id, _utcnow


class AdminAccount(Base):
    """Represents a provisioned staff login (admin or faculty)."""
    __tablename__ = "admins"

    id = Column(String, primary_key=True, default=_new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, default="admin")  # admin/faculty
    faculty_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
