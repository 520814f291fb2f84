"""Feedback model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from feedback_portal.database import Base
from feedback_portal.models.profile import _new_id, _utcnow

RATING_FIELDS = (
    "teaching_effectiveness",
    "course_content",
    "communication_skills",
    "punctuality",
    "student_interaction",
    "overall_rating",
)

TEXT_FIELDS = (
    "positive_feedback",
    "suggestions_for_improvement",
    "additional_comments",
)


class Feedback(Base):
    """One student's rating of one faculty member for one course and term."""
    __tablename__ = "feedback"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "faculty_id", "subject_name", "semester", "academic_year",
            name="uq_feedback_submission",
        ),
    )

    id = Column(String, primary_key=True, default=_new_id)
    student_id = Column(String, index=True, nullable=False)
    faculty_id = Column(String, ForeignKey("faculty.faculty_id"), index=True, nullable=False)
    subject_name = Column(String, nullable=False)
    semester = Column(String, nullable=False)
    academic_year = Column(String, nullable=False)
    teaching_effectiveness = Column(Integer)
    course_content = Column(Integer)
    communication_skills = Column(Integer)
    punctuality = Column(Integer)
    student_interaction = Column(Integer)
    overall_rating = Column(Integer)
    positive_feedback = Column(Text)
    suggestions_for_improvement = Column(Text)
    additional_comments = Column(Text)
    is_anonymous = Column(Boolean, default=True)
    submitted_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
