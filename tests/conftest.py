import os
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('JWT_SECRET_KEY', 'test-jwt-secret-key-for-testing')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

from feedback_portal.auth.passwords import hash_password  # noqa: E402
from feedback_portal.auth.sessions import ROLE_ADMIN, ROLE_FACULTY, ROLE_STUDENT, SessionContext  # noqa: E402
from feedback_portal.database import Base  # noqa: E402
from feedback_portal.models.admin import AdminAccount  # noqa: E402
from feedback_portal.models.course import Course, CourseAssignment  # noqa: E402
from feedback_portal.models.faculty import Faculty  # noqa: E402
from feedback_portal.models.feedback import Feedback  # noqa: E402
from feedback_portal.models.profile import StudentProfile  # noqa: E402
from feedback_portal.models.session import UserSession  # noqa: F401,E402


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def student(db) -> StudentProfile:
    profile = StudentProfile(
        college_email='priya.sharma@college.edu',
        roll_number='23A91A0501',
        name='Priya Sharma',
        date_of_birth=date(2005, 4, 11),
        section='A',
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def admin_account(db) -> AdminAccount:
    account = AdminAccount(
        email='admin@college.edu',
        name='Portal Admin',
        password_hash=hash_password('s3cret-pass', rounds=4),
        role='admin',
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@pytest.fixture
def catalogue(db):
    """Two faculty teaching two courses to section A in the current term."""
    db.add_all([
        Faculty(
            faculty_id='FAC001',
            name='Dr. G. Sreedhar',
            designation='Professor',
            qualification='PhD',
            experience='15 years',
        ),
        Faculty(
            faculty_id='FAC002',
            name='Ms. B. Swetha',
            designation='Assistant Professor',
            qualification='M.Tech',
            experience='6 years',
        ),
        Course(course_id='23HS402', course_name='Probability and Statistics'),
        Course(course_id='2305452', course_name='Full Stack Development'),
    ])
    db.flush()
    db.add_all([
        CourseAssignment(
            course_id='23HS402', faculty_id='FAC001', section='A', semester='3rd', academic_year='2024-25',
        ),
        CourseAssignment(
            course_id='2305452', faculty_id='FAC002', section='A', semester='3rd', academic_year='2024-25',
        ),
    ])
    db.commit()


def _make_context(role: str = ROLE_STUDENT, **overrides) -> SessionContext:
    values = {
        'session_id': 'session-1',
        'role': role,
        'subject_id': 'subject-1',
        'name': 'Test User',
        'section': 'A' if role == ROLE_STUDENT else None,
    }
    values.update(overrides)
    return SessionContext(**values)


@pytest.fixture
def student_context(student) -> SessionContext:
    return _make_context(
        ROLE_STUDENT,
        subject_id=student.id,
        name=student.name,
        email=student.college_email,
        roll_number=student.roll_number,
        section=student.section,
    )


@pytest.fixture
def admin_context() -> SessionContext:
    return _make_context(ROLE_ADMIN, subject_id='admin-1', name='Portal Admin')


@pytest.fixture
def faculty_context() -> SessionContext:
    return _make_context(ROLE_FACULTY, subject_id='staff-1', name='Dr. G. Sreedhar', faculty_id='FAC001')


def _make_feedback(**overrides) -> Feedback:
    values = {
        'student_id': 'student-1',
        'faculty_id': 'FAC001',
        'subject_name': 'Probability and Statistics',
        'semester': '3rd',
        'academic_year': '2024-25',
        'teaching_effectiveness': 8,
        'course_content': 8,
        'communication_skills': 8,
        'punctuality': 8,
        'student_interaction': 8,
        'overall_rating': 8,
        'is_anonymous': True,
        'submitted_at': datetime(2024, 9, 15, 10, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return Feedback(**values)


@pytest.fixture
def context_factory():
    return _make_context


@pytest.fixture
def feedback_factory():
    return _make_feedback
