"""Login session model definitions."""

from sqlalchemy import Column, DateTime, String
from feedback_portal.database import Base
from feedback_portal.models.profile import _new_id, _utcnow


class UserSession(Base):
    """Server-side record of a login, ended explicitly at logout."""
    __tablename__ = "user_sessions"

    id = Column(String, primary_key=True, default=_new_id)
    subject_id = Column(String, index=True, nullable=False)
    role = Column(String, nullable=False)  # student/faculty/admin
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    ended_at = Column(DateTime(timezone=True), nullable=True)
