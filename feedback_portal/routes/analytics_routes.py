from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_portal.auth.dependencies import require_admin, require_staff
from feedback_portal.auth.sessions import ROLE_FACULTY, SessionContext
from feedback_portal.core import config
from feedback_portal.core.analytics import AnalyticsSnapshot, FacultySummary, compute_faculty_summary, compute_snapshot
from feedback_portal.core.errors import Forbidden, RemoteFailure
from feedback_portal.database import ensure_database_ready, get_db
from feedback_portal.models.course import Course
from feedback_portal.models.faculty import Faculty
from feedback_portal.models.feedback import Feedback
from feedback_portal.models.profile import StudentProfile
from feedback_portal.routes.faculty_routes import get_faculty_or_404

router = APIRouter(tags=['analytics'])


class OverviewResponse(BaseModel):
    total_feedback: int
    average_rating: float
    faculty_count: int
    course_count: int
    student_count: int


def load_snapshot(db: Session, faculty_id: str | None = None) -> AnalyticsSnapshot:
    query = db.query(Feedback)
    if faculty_id:
        query = query.filter(Feedback.faculty_id == faculty_id)
    records = query.all()
    faculty = db.query(Faculty).all()
    return compute_snapshot(records, faculty=faculty, tz=config.get_reporting_timezone())


def ensure_faculty_scope(context: SessionContext, faculty_id: str) -> None:
    if context.role == ROLE_FACULTY and context.faculty_id != faculty_id:
        raise Forbidden('Faculty members can only view their own analytics.')


@router.get('', response_model=AnalyticsSnapshot)
def get_analytics(
    context: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    scope = None
    if context.role == ROLE_FACULTY:
        if not context.faculty_id:
            raise Forbidden('This account is not linked to a faculty record.')
        scope = context.faculty_id

    try:
        return load_snapshot(db, faculty_id=scope)
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc


@router.get('/overview', response_model=OverviewResponse)
def get_overview(
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        snapshot = load_snapshot(db)
        return OverviewResponse(
            total_feedback=snapshot.total_feedback_count,
            average_rating=snapshot.average_overall_rating,
            faculty_count=db.query(Faculty).count(),
            course_count=db.query(Course).count(),
            student_count=db.query(StudentProfile).count(),
        )
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc


@router.get('/faculty/{faculty_id}', response_model=FacultySummary)
def get_faculty_analytics(
    faculty_id: str,
    context: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    ensure_faculty_scope(context, faculty_id)
    ensure_database_ready()

    try:
        get_faculty_or_404(db, faculty_id)
        records = db.query(Feedback).filter(Feedback.faculty_id == faculty_id).all()
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc

    return compute_faculty_summary(records, faculty_id)
