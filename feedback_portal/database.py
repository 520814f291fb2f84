import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from feedback_portal.core import config
from feedback_portal.core.errors import RemoteFailure


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./feedback_portal.db")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=config.SQL_ECHO, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_feedback_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_feedback_schema() -> None:
    """Backfill the submission uniqueness index on feedback tables created without it."""
    global _feedback_schema_checked

    if _feedback_schema_checked:
        return

    with _schema_lock:
        if _feedback_schema_checked:
            return

        inspector = inspect(engine)

        if 'feedback' not in inspector.get_table_names():
            _feedback_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_feedback_submission ON feedback'
                    '(student_id, faculty_id, subject_name, semester, academic_year)'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_feedback_faculty_submitted ON feedback(faculty_id, submitted_at)')
            )

        _feedback_schema_checked = True


def ensure_database_ready() -> None:
    try:
        ensure_feedback_schema()
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc
