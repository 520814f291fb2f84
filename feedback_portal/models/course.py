"""Course and course assignment model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, UniqueConstraint
from feedback_portal.database import Base
from feedback_portal.models.profile import _new_id, _utcnow


class Course(Base):
    """Represents a course in the catalogue."""
    __tablename__ = "courses"

    id = Column(String, primary_key=True, default=_new_id)
    course_id = Column(String, unique=True, index=True, nullable=False)
    course_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class CourseAssignment(Base):
    """Assigns one faculty member to a course offering for a section and term."""
    __tablename__ = "course_assignments"
    __table_args__ = (
        UniqueConstraint(
            "course_id", "section", "semester", "academic_year",
            name="uq_course_assignment_offering",
        ),
        Index("idx_assignments_cohort", "section", "semester", "academic_year"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    course_id = Column(String, ForeignKey("courses.course_id"), nullable=False)
    faculty_id = Column(String, ForeignKey("faculty.faculty_id"), nullable=False)
    section = Column(String, nullable=False)
    semester = Column(String, nullable=False)
    academic_year = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
