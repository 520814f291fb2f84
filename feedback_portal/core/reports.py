"""Exportable JSON/CSV renditions of analytics snapshots and raw feedback."""

import csv
import io
import json
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from feedback_portal.core.analytics import AnalyticsSnapshot, FacultyRating
from feedback_portal.core.errors import InvalidRequest
from feedback_portal.models.feedback import RATING_FIELDS, TEXT_FIELDS

SATISFIED_MIN_RATING = 7
NEEDS_IMPROVEMENT_BELOW = 6
ANONYMOUS_STUDENT = 'Anonymous'


class ExportMode(str, Enum):
    JSON = 'json'
    CSV = 'csv'


class ReportType(str, Enum):
    COMPLETE = 'complete'
    FACULTY = 'faculty'
    SUMMARY = 'summary'
    DEPARTMENT = 'department'


REPORT_FILE_STEMS = {
    ReportType.COMPLETE: 'feedback-report',
    ReportType.FACULTY: 'faculty-performance',
    ReportType.SUMMARY: 'feedback-summary',
    ReportType.DEPARTMENT: 'department-analysis',
}

MEDIA_TYPES = {
    ExportMode.JSON: 'application/json',
    ExportMode.CSV: 'text/csv',
}


@dataclass(frozen=True)
class ExportedReport:
    content: bytes
    filename: str
    media_type: str


def build_filename(stem: str, mode: ExportMode, today: date | None = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f'{stem}-{today.isoformat()}.{mode.value}'


def _rate(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole, 4)


def build_complete_report(snapshot: AnalyticsSnapshot, generated_at: datetime) -> dict[str, Any]:
    return {
        'generated_at': generated_at.isoformat(),
        **snapshot.model_dump(),
    }


def build_faculty_report(snapshot: AnalyticsSnapshot) -> dict[str, Any]:
    ratings = snapshot.faculty_ratings
    rated = [rating for rating in ratings if rating.rated_count]
    highest = rated[0] if rated else None
    lowest = rated[-1] if rated else None
    return {
        'faculty_ratings': [rating.model_dump() for rating in ratings],
        'summary': {
            'faculty_count': len(ratings),
            'highest_rated_faculty': highest.faculty_name if highest else None,
            'highest_rating': highest.avg_rating if highest else 0,
            'lowest_rated_faculty': lowest.faculty_name if lowest else None,
            'lowest_rating': lowest.avg_rating if lowest else 0,
        },
    }


def build_summary_report(snapshot: AnalyticsSnapshot) -> dict[str, Any]:
    rated = sum(bucket.count for bucket in snapshot.rating_distribution)
    satisfied = sum(
        bucket.count for bucket in snapshot.rating_distribution if bucket.rating_bucket >= SATISFIED_MIN_RATING
    )
    needs_improvement = sum(
        bucket.count for bucket in snapshot.rating_distribution if bucket.rating_bucket < NEEDS_IMPROVEMENT_BELOW
    )
    return {
        'total_feedback_submissions': snapshot.total_feedback_count,
        'overall_satisfaction_rating': snapshot.average_overall_rating,
        'satisfaction_rate': _rate(satisfied, rated),
        'improvement_rate': _rate(needs_improvement, rated),
        'faculty_evaluated': len(snapshot.faculty_ratings),
    }


def build_department_report(faculty_ratings: Iterable[FacultyRating]) -> list[dict[str, Any]]:
    groups: dict[str, list[FacultyRating]] = defaultdict(list)
    for rating in faculty_ratings:
        groups[rating.designation].append(rating)

    departments = []
    for department in sorted(groups):
        members = groups[department]
        rated = [member.avg_rating for member in members if member.rated_count]
        departments.append({
            'department': department,
            'faculty_count': len(members),
            'feedback_count': sum(member.feedback_count for member in members),
            'avg_rating': round(sum(rated) / len(rated), 2) if rated else 0.0,
        })
    return departments


def _write_table(writer, headers: list[str], rows: Iterable[dict[str, Any]]) -> None:
    writer.writerow(headers)
    for row in rows:
        writer.writerow(['' if row.get(header) is None else row.get(header) for header in headers])


def _report_to_csv(report: ReportType, payload: Any) -> str:
    output = io.StringIO()
    writer = csv.writer(output)

    if report == ReportType.COMPLETE:
        writer.writerow(['generated_at', 'total_feedback_count', 'average_overall_rating'])
        writer.writerow([payload['generated_at'], payload['total_feedback_count'], payload['average_overall_rating']])
        writer.writerow([])
        _write_table(
            writer,
            ['faculty_id', 'faculty_name', 'designation', 'avg_rating', 'feedback_count'],
            payload['faculty_ratings'],
        )
        writer.writerow([])
        _write_table(writer, ['rating_bucket', 'count'], payload['rating_distribution'])
        writer.writerow([])
        _write_table(writer, ['month', 'count', 'avg_rating'], payload['monthly_trends'])
    elif report == ReportType.FACULTY:
        _write_table(
            writer,
            ['faculty_id', 'faculty_name', 'designation', 'avg_rating', 'feedback_count'],
            payload['faculty_ratings'],
        )
    elif report == ReportType.SUMMARY:
        writer.writerow(['metric', 'value'])
        for metric, value in payload.items():
            writer.writerow([metric, value])
    elif report == ReportType.DEPARTMENT:
        _write_table(writer, ['department', 'faculty_count', 'feedback_count', 'avg_rating'], payload)

    return output.getvalue()


def format_report(
    snapshot: AnalyticsSnapshot,
    mode: ExportMode | str,
    report: ReportType | str,
    today: date | None = None,
) -> ExportedReport:
    try:
        mode = ExportMode(mode)
        report = ReportType(report)
    except ValueError as exc:
        raise InvalidRequest('Unsupported report or export format.') from exc

    generated_at = datetime.now(timezone.utc)
    if report == ReportType.COMPLETE:
        payload: Any = build_complete_report(snapshot, generated_at)
    elif report == ReportType.FACULTY:
        payload = build_faculty_report(snapshot)
    elif report == ReportType.SUMMARY:
        payload = build_summary_report(snapshot)
    else:
        payload = build_department_report(snapshot.faculty_ratings)

    if mode == ExportMode.JSON:
        content = json.dumps(payload, indent=2)
    else:
        content = _report_to_csv(report, payload)

    return ExportedReport(
        content=content.encode('utf-8'),
        filename=build_filename(REPORT_FILE_STEMS[report], mode, today),
        media_type=MEDIA_TYPES[mode],
    )


RECORD_COLUMNS = [
    'id',
    'student_id',
    'faculty_id',
    'faculty_name',
    'subject_name',
    'semester',
    'academic_year',
    *RATING_FIELDS,
    *TEXT_FIELDS,
    'is_anonymous',
    'submitted_at',
]


def project_record(record: Any, faculty_names: dict[str, str] | None = None) -> dict[str, Any]:
    """Flatten one feedback row, hiding the student behind anonymous submissions."""
    faculty_names = faculty_names or {}
    row = {column: getattr(record, column, None) for column in RECORD_COLUMNS}
    row['faculty_name'] = faculty_names.get(record.faculty_id)
    if record.is_anonymous is not False:
        row['student_id'] = ANONYMOUS_STUDENT
    if row['submitted_at'] is not None:
        row['submitted_at'] = row['submitted_at'].isoformat()
    return row


def format_feedback_records(
    records: Iterable[Any],
    mode: ExportMode | str,
    faculty: Iterable[Any] = (),
    today: date | None = None,
) -> ExportedReport:
    try:
        mode = ExportMode(mode)
    except ValueError as exc:
        raise InvalidRequest('Unsupported export format.') from exc

    faculty_names = {member.faculty_id: member.name for member in faculty}
    rows = [project_record(record, faculty_names) for record in records]

    if mode == ExportMode.JSON:
        content = json.dumps(rows, indent=2)
    else:
        output = io.StringIO()
        _write_table(csv.writer(output), RECORD_COLUMNS, rows)
        content = output.getvalue()

    return ExportedReport(
        content=content.encode('utf-8'),
        filename=build_filename('feedback-records', mode, today),
        media_type=MEDIA_TYPES[mode],
    )
