import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_portal.auth.dependencies import require_admin
from feedback_portal.auth.sessions import SessionContext
from feedback_portal.core import config
from feedback_portal.core.errors import InvalidRequest, NotFound, RemoteFailure
from feedback_portal.database import ensure_database_ready, get_db
from feedback_portal.models.course import Course, CourseAssignment
from feedback_portal.models.faculty import Faculty

router = APIRouter(tags=['courses'])

logger = logging.getLogger(__name__)


class CourseCreateRequest(BaseModel):
    course_id: str
    course_name: str

    @field_validator('course_id', 'course_name')
    @classmethod
    def validate_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Course ID and name are required.')
        return normalized


class AssignmentCreateRequest(BaseModel):
    course_id: str
    faculty_id: str
    section: str
    semester: str = config.CURRENT_SEMESTER
    academic_year: str = config.CURRENT_ACADEMIC_YEAR

    @field_validator('course_id', 'faculty_id', 'section', 'semester', 'academic_year')
    @classmethod
    def validate_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Course, faculty, section and term are required.')
        return normalized


class AssignmentResponse(BaseModel):
    id: str
    course_id: str
    faculty_id: str
    faculty_name: str | None = None
    section: str
    semester: str
    academic_year: str


class CourseResponse(BaseModel):
    id: str
    course_id: str
    course_name: str
    assignments: list[AssignmentResponse] = []


def load_courses_with_assignments(
    db: Session,
    search: str | None = None,
    section: str | None = None,
) -> list[CourseResponse]:
    query = db.query(Course)
    if search and search.strip():
        pattern = f'%{search.strip().lower()}%'
        query = query.filter(
            or_(func.lower(Course.course_name).like(pattern), func.lower(Course.course_id).like(pattern))
        )
    courses = query.order_by(Course.course_id.asc()).all()

    assignment_rows = (
        db.query(CourseAssignment, Faculty.name)
        .outerjoin(Faculty, Faculty.faculty_id == CourseAssignment.faculty_id)
        .order_by(CourseAssignment.section.asc())
        .all()
    )
    by_course: dict[str, list[AssignmentResponse]] = {}
    for assignment, faculty_name in assignment_rows:
        by_course.setdefault(assignment.course_id, []).append(
            AssignmentResponse(
                id=assignment.id,
                course_id=assignment.course_id,
                faculty_id=assignment.faculty_id,
                faculty_name=faculty_name,
                section=assignment.section,
                semester=assignment.semester,
                academic_year=assignment.academic_year,
            )
        )

    results = []
    for course in courses:
        assignments = by_course.get(course.course_id, [])
        if section and section.lower() != 'all' and not any(a.section == section for a in assignments):
            continue
        results.append(
            CourseResponse(
                id=course.id,
                course_id=course.course_id,
                course_name=course.course_name,
                assignments=assignments,
            )
        )
    return results


@router.get('', response_model=list[CourseResponse])
def list_courses(
    search: str | None = Query(default=None),
    section: str | None = Query(default=None),
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return load_courses_with_assignments(db, search=search, section=section)
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc


@router.post('', response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CourseCreateRequest,
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        course = Course(course_id=data.course_id, course_name=data.course_name)
        db.add(course)
        db.commit()
        db.refresh(course)
    except IntegrityError as exc:
        db.rollback()
        raise InvalidRequest('A course with this ID already exists.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc

    logger.info('Admin %s created course %s', context.subject_id, course.course_id)
    return CourseResponse(id=course.id, course_id=course.course_id, course_name=course.course_name)


@router.post('/assignments', response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
def create_assignment(
    data: AssignmentCreateRequest,
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        if db.query(Course).filter(Course.course_id == data.course_id).first() is None:
            raise NotFound('Course not found.')
        faculty = db.query(Faculty).filter(Faculty.faculty_id == data.faculty_id).first()
        if faculty is None:
            raise NotFound('Faculty member not found.')

        taken = db.query(CourseAssignment).filter(
            CourseAssignment.course_id == data.course_id,
            CourseAssignment.section == data.section,
            CourseAssignment.semester == data.semester,
            CourseAssignment.academic_year == data.academic_year,
        ).first()
        if taken:
            raise InvalidRequest('This course already has a faculty member for that section and term.')

        assignment = CourseAssignment(**data.model_dump())
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
    except IntegrityError as exc:
        db.rollback()
        raise InvalidRequest('This course already has a faculty member for that section and term.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc

    logger.info('Admin %s assigned %s to %s/%s', context.subject_id, data.faculty_id, data.course_id, data.section)
    return AssignmentResponse(
        id=assignment.id,
        course_id=assignment.course_id,
        faculty_id=assignment.faculty_id,
        faculty_name=faculty.name,
        section=assignment.section,
        semester=assignment.semester,
        academic_year=assignment.academic_year,
    )


@router.delete('/assignments/{assignment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: str,
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        assignment = db.get(CourseAssignment, assignment_id)
        if assignment is None:
            raise NotFound('Course assignment not found.')
        db.delete(assignment)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc

    logger.info('Admin %s removed course assignment %s', context.subject_id, assignment_id)
