import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_portal.auth.dependencies import require_admin
from feedback_portal.auth.sessions import SessionContext
from feedback_portal.core.errors import InvalidRequest, NotFound, RecordInUse, RemoteFailure
from feedback_portal.database import ensure_database_ready, get_db
from feedback_portal.models.course import CourseAssignment
from feedback_portal.models.faculty import Faculty
from feedback_portal.models.feedback import Feedback

router = APIRouter(tags=['faculty'])

logger = logging.getLogger(__name__)


def _required_text(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{label} is required.')
    return normalized


class FacultyUpdateRequest(BaseModel):
    name: str
    designation: str
    qualification: str
    experience: str

    @field_validator('name', 'designation', 'qualification', 'experience')
    @classmethod
    def validate_text(cls, value: str, info) -> str:
        return _required_text(value, info.field_name.capitalize())


class FacultyCreateRequest(FacultyUpdateRequest):
    faculty_id: str

    @field_validator('faculty_id')
    @classmethod
    def validate_faculty_id(cls, value: str) -> str:
        return _required_text(value, 'Faculty ID')


class FacultyResponse(BaseModel):
    id: str
    faculty_id: str
    name: str
    designation: str
    qualification: str
    experience: str

    class Config:
        from_attributes = True


def filter_faculty(db: Session, search: str | None = None, designation: str | None = None):
    query = db.query(Faculty)
    if search and search.strip():
        pattern = f'%{search.strip().lower()}%'
        query = query.filter(
            or_(func.lower(Faculty.name).like(pattern), func.lower(Faculty.faculty_id).like(pattern))
        )
    if designation and designation.strip() and designation.strip().lower() != 'all':
        query = query.filter(Faculty.designation.contains(designation.strip()))
    return query.order_by(Faculty.faculty_id.asc()).all()


def get_faculty_or_404(db: Session, faculty_id: str) -> Faculty:
    faculty = db.query(Faculty).filter(Faculty.faculty_id == faculty_id).first()
    if faculty is None:
        raise NotFound('Faculty member not found.')
    return faculty


@router.get('', response_model=list[FacultyResponse])
def list_faculty(
    search: str | None = Query(default=None),
    designation: str | None = Query(default=None),
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return filter_faculty(db, search=search, designation=designation)
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc


@router.post('', response_model=FacultyResponse, status_code=status.HTTP_201_CREATED)
def create_faculty(
    data: FacultyCreateRequest,
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        existing = db.query(Faculty).filter(Faculty.faculty_id == data.faculty_id).first()
        if existing:
            raise InvalidRequest('A faculty member with this ID already exists.')

        faculty = Faculty(**data.model_dump())
        db.add(faculty)
        db.commit()
        db.refresh(faculty)
    except IntegrityError as exc:
        db.rollback()
        raise InvalidRequest('A faculty member with this ID already exists.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc

    logger.info('Admin %s created faculty %s', context.subject_id, faculty.faculty_id)
    return faculty


@router.put('/{faculty_id}', response_model=FacultyResponse)
def update_faculty(
    faculty_id: str,
    data: FacultyUpdateRequest,
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        faculty = get_faculty_or_404(db, faculty_id)
        for field, value in data.model_dump().items():
            setattr(faculty, field, value)
        db.commit()
        db.refresh(faculty)
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc

    logger.info('Admin %s updated faculty %s', context.subject_id, faculty_id)
    return faculty


@router.delete('/{faculty_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_faculty(
    faculty_id: str,
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        faculty = get_faculty_or_404(db, faculty_id)

        # Feedback and assignments keep their faculty; deletion is refused instead of cascading.
        feedback_count = db.query(Feedback).filter(Feedback.faculty_id == faculty_id).count()
        if feedback_count:
            raise RecordInUse(f'Faculty member has {feedback_count} feedback records and cannot be deleted.')
        assignment_count = db.query(CourseAssignment).filter(CourseAssignment.faculty_id == faculty_id).count()
        if assignment_count:
            raise RecordInUse('Faculty member is still assigned to courses and cannot be deleted.')

        db.delete(faculty)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc

    logger.info('Admin %s deleted faculty %s', context.subject_id, faculty_id)
