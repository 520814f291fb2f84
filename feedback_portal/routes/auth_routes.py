import logging
from datetime import date

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_portal.auth import credentials, sessions
from feedback_portal.auth.dependencies import get_current_session
from feedback_portal.auth.sessions import ROLE_ADMIN, ROLE_FACULTY, ROLE_STUDENT, SessionContext
from feedback_portal.core.errors import InvalidCredentials, RemoteFailure
from feedback_portal.database import get_db

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


class StudentLoginRequest(BaseModel):
    college_email: str
    date_of_birth: date | None = None
    roll_number: str | None = None

    @field_validator('college_email')
    @classmethod
    def normalize_college_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('roll_number')
    @classmethod
    def normalize_roll_number(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class AdminLoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip()


class SessionResponse(BaseModel):
    session_id: str
    role: str
    subject_id: str
    name: str
    email: str | None = None
    roll_number: str | None = None
    section: str | None = None
    faculty_id: str | None = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    role: str
    profile: SessionResponse


def _login_response(context: SessionContext, token: str) -> LoginResponse:
    return LoginResponse(
        access_token=token,
        role=context.role,
        profile=SessionResponse(**context.as_dict()),
    )


@router.post('/student/login', response_model=LoginResponse)
def student_login(data: StudentLoginRequest, db: Session = Depends(get_db)):
    try:
        result = credentials.verify_student(
            db,
            college_email=data.college_email,
            date_of_birth=data.date_of_birth,
            roll_number=data.roll_number,
        )
        if not result.is_valid:
            raise InvalidCredentials('Please check your college email and verification details.')

        context, token = sessions.open_session(db, ROLE_STUDENT, result.profile)
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc

    logger.info('Student %s logged in', context.subject_id)
    return _login_response(context, token)


@router.post('/admin/login', response_model=LoginResponse)
def admin_login(data: AdminLoginRequest, db: Session = Depends(get_db)):
    try:
        result = credentials.verify_admin(db, email=data.email, password=data.password)
        if not result.is_valid:
            raise InvalidCredentials('Please check your email and password.')

        role = ROLE_FACULTY if result.profile['role'] == ROLE_FACULTY else ROLE_ADMIN
        context, token = sessions.open_session(db, role, result.profile)
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc

    logger.info('Staff member %s logged in as %s', context.subject_id, role)
    return _login_response(context, token)


@router.post('/logout', status_code=status.HTTP_204_NO_CONTENT)
def logout(
    context: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        sessions.close_session(db, context)
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure() from exc


@router.get('/me', response_model=SessionResponse)
def me(context: SessionContext = Depends(get_current_session)):
    return SessionResponse(**context.as_dict())
