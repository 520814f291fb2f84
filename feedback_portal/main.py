import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from feedback_portal.core import config
from feedback_portal.database import Base, engine, ensure_feedback_schema
from feedback_portal.models import admin, course, faculty, feedback, profile, session  # noqa: F401
from feedback_portal.routes import (
    analytics_routes,
    auth_routes,
    course_routes,
    faculty_routes,
    feedback_routes,
    report_routes,
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

app = FastAPI(title='Academic Feedback Portal API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_feedback_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Feedback Portal API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(feedback_routes.router, prefix='/feedback')
app.include_router(faculty_routes.router, prefix='/faculty')
app.include_router(course_routes.router, prefix='/courses')
app.include_router(analytics_routes.router, prefix='/analytics')
app.include_router(report_routes.router, prefix='/reports')
