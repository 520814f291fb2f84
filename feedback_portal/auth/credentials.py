"""Credential checks for students and staff.

A failed match is reported as ``is_valid=False`` and never says which factor
was wrong; only malformed requests raise.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from feedback_portal.auth.passwords import verify_password
from feedback_portal.core.errors import InvalidRequest
from feedback_portal.models.admin import AdminAccount
from feedback_portal.models.profile import StudentProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    is_valid: bool
    profile: dict[str, Any] = field(default_factory=dict)


INVALID = VerificationResult(is_valid=False)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date_of_birth(value: date | str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidRequest('Date of birth must be in YYYY-MM-DD format.') from exc


def student_projection(profile: StudentProfile) -> dict[str, Any]:
    return {
        'id': profile.id,
        'name': profile.name,
        'college_email': profile.college_email,
        'roll_number': profile.roll_number,
        'section': profile.section,
    }


def admin_projection(account: AdminAccount) -> dict[str, Any]:
    return {
        'id': account.id,
        'name': account.name,
        'email': account.email,
        'role': account.role or 'admin',
        'faculty_id': account.faculty_id,
    }


def verify_student(
    db: Session,
    college_email: str,
    date_of_birth: date | str | None = None,
    roll_number: str | None = None,
) -> VerificationResult:
    if _blank(college_email):
        raise InvalidRequest('College email is required.')

    has_dob = not _blank(date_of_birth)
    has_roll = not _blank(roll_number)
    if has_dob == has_roll:
        raise InvalidRequest('Provide either a date of birth or a roll number.')

    normalized_email = college_email.strip().lower()
    query = db.query(StudentProfile).filter(func.lower(StudentProfile.college_email) == normalized_email)
    if has_dob:
        query = query.filter(StudentProfile.date_of_birth == _parse_date_of_birth(date_of_birth))
    else:
        query = query.filter(StudentProfile.roll_number == roll_number.strip())

    profile = query.first()
    if profile is None:
        logger.info('Student verification failed.')
        return INVALID

    return VerificationResult(is_valid=True, profile=student_projection(profile))


def verify_admin(db: Session, email: str, password: str) -> VerificationResult:
    if _blank(email) or _blank(password):
        raise InvalidRequest('Email and password are required.')

    account = db.query(AdminAccount).filter(AdminAccount.email == email.strip()).first()
    if account is None or not verify_password(password, account.password_hash):
        logger.info('Staff verification failed.')
        return INVALID

    return VerificationResult(is_valid=True, profile=admin_projection(account))
