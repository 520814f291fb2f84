import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_portal.auth.dependencies import require_staff, require_student
from feedback_portal.auth.sessions import ROLE_FACULTY, SessionContext
from feedback_portal.core import config
from feedback_portal.core.errors import DuplicateSubmission, Forbidden, InvalidRequest, RemoteFailure
from feedback_portal.core.reports import ANONYMOUS_STUDENT
from feedback_portal.core.validation import SubmissionKey, ValidatedFeedback, submission_key, validate_submission
from feedback_portal.database import ensure_database_ready, get_db
from feedback_portal.models.course import Course, CourseAssignment
from feedback_portal.models.faculty import Faculty
from feedback_portal.models.feedback import Feedback

router = APIRouter(tags=['feedback'])

logger = logging.getLogger(__name__)


class FeedbackSubmissionRequest(BaseModel):
    faculty_id: str
    subject_name: str
    semester: str = config.CURRENT_SEMESTER
    academic_year: str = config.CURRENT_ACADEMIC_YEAR
    # Ratings are passed through untouched; validate_submission decides what is a whole number.
    teaching_effectiveness: Any = None
    course_content: Any = None
    communication_skills: Any = None
    punctuality: Any = None
    student_interaction: Any = None
    overall_rating: Any = None
    positive_feedback: str | None = None
    suggestions_for_improvement: str | None = None
    additional_comments: str | None = None
    is_anonymous: bool = True


class FeedbackResponse(BaseModel):
    id: str
    student_id: str
    faculty_id: str
    faculty_name: str | None = None
    subject_name: str
    semester: str
    academic_year: str
    teaching_effectiveness: int | None = None
    course_content: int | None = None
    communication_skills: int | None = None
    punctuality: int | None = None
    student_interaction: int | None = None
    overall_rating: int | None = None
    positive_feedback: str | None = None
    suggestions_for_improvement: str | None = None
    additional_comments: str | None = None
    is_anonymous: bool
    submitted_at: datetime

    class Config:
        from_attributes = True


class EligibleCourseResponse(BaseModel):
    course_id: str
    course_name: str
    faculty_id: str
    faculty_name: str
    feedback_submitted: bool


class StudentCoursesResponse(BaseModel):
    semester: str
    academic_year: str
    section: str | None = None
    courses: list[EligibleCourseResponse]
    completed_count: int
    total_count: int
    progress_percentage: float


def get_submitted_keys(db: Session, student_id: str) -> set[SubmissionKey]:
    records = db.query(Feedback).filter(Feedback.student_id == student_id).all()
    return {submission_key(record) for record in records}


def list_eligible_courses(
    db: Session,
    student_id: str,
    section: str | None,
    semester: str,
    academic_year: str,
) -> list[EligibleCourseResponse]:
    if not section:
        return []

    rows = (
        db.query(CourseAssignment, Course, Faculty)
        .outerjoin(Course, Course.course_id == CourseAssignment.course_id)
        .outerjoin(Faculty, Faculty.faculty_id == CourseAssignment.faculty_id)
        .filter(
            CourseAssignment.section == section,
            CourseAssignment.semester == semester,
            CourseAssignment.academic_year == academic_year,
        )
        .order_by(CourseAssignment.course_id.asc())
        .all()
    )
    submitted = get_submitted_keys(db, student_id)

    courses = []
    for assignment, course, faculty in rows:
        course_name = course.course_name if course else 'Unknown Course'
        key = (student_id, assignment.faculty_id, course_name, semester, academic_year)
        courses.append(
            EligibleCourseResponse(
                course_id=assignment.course_id,
                course_name=course_name,
                faculty_id=assignment.faculty_id,
                faculty_name=faculty.name if faculty else 'Unknown Faculty',
                feedback_submitted=key in submitted,
            )
        )
    return courses


def ensure_student_is_eligible(db: Session, context: SessionContext, feedback: ValidatedFeedback) -> None:
    eligible = list_eligible_courses(
        db,
        student_id=context.subject_id,
        section=context.section,
        semester=feedback.semester,
        academic_year=feedback.academic_year,
    )
    for course in eligible:
        if course.faculty_id == feedback.faculty_id and course.course_name == feedback.subject_name:
            return
    raise InvalidRequest('You can only give feedback for courses assigned to your section this term.')


def to_feedback_response(record: Feedback, faculty_name: str | None = None, mask_anonymous: bool = False):
    response = FeedbackResponse.model_validate(record)
    response.faculty_name = faculty_name
    if mask_anonymous and record.is_anonymous is not False:
        response.student_id = ANONYMOUS_STUDENT
    return response


@router.get('/courses', response_model=StudentCoursesResponse)
def list_my_courses(
    semester: str = Query(default=config.CURRENT_SEMESTER),
    academic_year: str = Query(default=config.CURRENT_ACADEMIC_YEAR),
    context: SessionContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        courses = list_eligible_courses(db, context.subject_id, context.section, semester, academic_year)
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc

    completed = sum(1 for course in courses if course.feedback_submitted)
    return StudentCoursesResponse(
        semester=semester,
        academic_year=academic_year,
        section=context.section,
        courses=courses,
        completed_count=completed,
        total_count=len(courses),
        progress_percentage=round(completed / len(courses) * 100, 1) if courses else 0.0,
    )


@router.post('', response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
def submit_feedback(
    data: FeedbackSubmissionRequest,
    context: SessionContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    candidate = {**data.model_dump(), 'student_id': context.subject_id}

    # Structural rules never touch the database.
    validated = validate_submission(candidate)

    ensure_database_ready()

    try:
        if validated.key in get_submitted_keys(db, context.subject_id):
            logger.warning('Rejected duplicate feedback from %s for %s', context.subject_id, validated.faculty_id)
            raise DuplicateSubmission()
        ensure_student_is_eligible(db, context, validated)

        record = Feedback(**validated.as_record_fields(), submitted_at=datetime.now(timezone.utc))
        db.add(record)
        db.commit()
        db.refresh(record)
    except IntegrityError as exc:
        db.rollback()
        logger.warning('Concurrent duplicate feedback from %s for %s', context.subject_id, validated.faculty_id)
        raise DuplicateSubmission() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc

    logger.info('Stored feedback %s for faculty %s', record.id, record.faculty_id)
    faculty = db.query(Faculty).filter(Faculty.faculty_id == record.faculty_id).first()
    return to_feedback_response(record, faculty.name if faculty else None)


@router.get('/mine', response_model=list[FeedbackResponse])
def list_my_feedback(
    context: SessionContext = Depends(require_student),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        rows = (
            db.query(Feedback, Faculty.name)
            .outerjoin(Faculty, Faculty.faculty_id == Feedback.faculty_id)
            .filter(Feedback.student_id == context.subject_id)
            .order_by(Feedback.submitted_at.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc

    return [to_feedback_response(record, faculty_name) for record, faculty_name in rows]


@router.get('', response_model=list[FeedbackResponse])
def list_feedback(
    faculty_id: str | None = Query(default=None),
    min_rating: int | None = Query(default=None, ge=1, le=10),
    context: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    if context.role == ROLE_FACULTY:
        if not context.faculty_id:
            raise Forbidden('This account is not linked to a faculty record.')
        if faculty_id and faculty_id != context.faculty_id:
            raise Forbidden('Faculty members can only review their own feedback.')
        faculty_id = context.faculty_id

    ensure_database_ready()

    try:
        query = db.query(Feedback, Faculty.name).outerjoin(Faculty, Faculty.faculty_id == Feedback.faculty_id)
        if faculty_id:
            query = query.filter(Feedback.faculty_id == faculty_id)
        if min_rating is not None:
            query = query.filter(Feedback.overall_rating >= min_rating)
        rows = query.order_by(Feedback.submitted_at.desc()).all()
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc

    return [to_feedback_response(record, faculty_name, mask_anonymous=True) for record, faculty_name in rows]
