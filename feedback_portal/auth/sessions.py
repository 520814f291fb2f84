"""Explicit per-login session context.

A ``SessionContext`` is built when a login succeeds, travels with every
request through the ``get_current_session`` dependency, and is torn down by
``close_session`` at logout. The backing ``UserSession`` row is what makes a
logged-out token unusable before it expires.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from feedback_portal.auth import jwt_handler
from feedback_portal.auth.credentials import admin_projection, student_projection
from feedback_portal.models.admin import AdminAccount
from feedback_portal.models.profile import StudentProfile
from feedback_portal.models.session import UserSession

logger = logging.getLogger(__name__)

ROLE_STUDENT = 'student'
ROLE_FACULTY = 'faculty'
ROLE_ADMIN = 'admin'
STAFF_ROLES = {ROLE_FACULTY, ROLE_ADMIN}


@dataclass(frozen=True)
class SessionContext:
    session_id: str
    role: str
    subject_id: str
    name: str
    email: str | None = None
    roll_number: str | None = None
    section: str | None = None
    faculty_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_context(session_id: str, role: str, profile: dict[str, Any]) -> SessionContext:
    return SessionContext(
        session_id=session_id,
        role=role,
        subject_id=profile['id'],
        name=profile['name'],
        email=profile.get('email') or profile.get('college_email'),
        roll_number=profile.get('roll_number'),
        section=profile.get('section'),
        faculty_id=profile.get('faculty_id'),
    )


def open_session(db: Session, role: str, profile: dict[str, Any]) -> tuple[SessionContext, str]:
    user_session = UserSession(subject_id=profile['id'], role=role)
    db.add(user_session)
    db.commit()
    db.refresh(user_session)

    token = jwt_handler.create_access_token(
        subject=profile['id'],
        session_id=user_session.id,
        role=role,
    )
    logger.info('Opened %s session %s', role, user_session.id)
    return build_context(user_session.id, role, profile), token


def load_session(db: Session, session_id: str) -> SessionContext | None:
    user_session = db.get(UserSession, session_id)
    if user_session is None or user_session.ended_at is not None:
        return None

    if user_session.role == ROLE_STUDENT:
        profile = db.get(StudentProfile, user_session.subject_id)
        projection = student_projection(profile) if profile else None
    else:
        account = db.get(AdminAccount, user_session.subject_id)
        projection = admin_projection(account) if account else None

    if projection is None:
        return None
    return build_context(user_session.id, user_session.role, projection)


def close_session(db: Session, context: SessionContext) -> None:
    user_session = db.get(UserSession, context.session_id)
    if user_session is None or user_session.ended_at is not None:
        return
    user_session.ended_at = datetime.now(timezone.utc)
    db.commit()
    logger.info('Closed %s session %s', context.role, context.session_id)
