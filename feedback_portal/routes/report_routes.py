import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_portal.auth.dependencies import require_admin
from feedback_portal.auth.sessions import SessionContext
from feedback_portal.core.errors import RemoteFailure
from feedback_portal.core.reports import ExportedReport, ExportMode, ReportType, format_feedback_records, format_report
from feedback_portal.database import ensure_database_ready, get_db
from feedback_portal.models.faculty import Faculty
from feedback_portal.models.feedback import Feedback
from feedback_portal.routes.analytics_routes import load_snapshot

router = APIRouter(tags=['reports'])

logger = logging.getLogger(__name__)


def as_download(report: ExportedReport) -> Response:
    return Response(
        content=report.content,
        media_type=report.media_type,
        headers={'Content-Disposition': f'attachment; filename={report.filename}'},
    )


@router.get('/feedback/records')
def export_feedback_records(
    format: ExportMode = Query(default=ExportMode.CSV),
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        records = db.query(Feedback).order_by(Feedback.submitted_at.asc()).all()
        faculty = db.query(Faculty).all()
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc

    report = format_feedback_records(records, format, faculty=faculty)
    logger.info('Admin %s exported %s', context.subject_id, report.filename)
    return as_download(report)


@router.get('/{report_type}')
def export_report(
    report_type: ReportType,
    format: ExportMode = Query(default=ExportMode.JSON),
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        snapshot = load_snapshot(db)
    except SQLAlchemyError as exc:
        raise RemoteFailure() from exc

    report = format_report(snapshot, format, report_type)
    logger.info('Admin %s exported %s', context.subject_id, report.filename)
    return as_download(report)
