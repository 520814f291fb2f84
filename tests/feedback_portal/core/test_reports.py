import csv
import io
import json
from datetime import date
from types import SimpleNamespace

import pytest

from feedback_portal.core.analytics import compute_snapshot
from feedback_portal.core.errors import InvalidRequest
from feedback_portal.core.reports import format_feedback_records, format_report

REPORT_DAY = date(2024, 11, 5)

FACULTY = [
    SimpleNamespace(faculty_id='FAC001', name='Dr. G. Sreedhar', designation='Professor'),
    SimpleNamespace(faculty_id='FAC002', name='Ms. B. Swetha', designation='Assistant Professor'),
    SimpleNamespace(faculty_id='FAC003', name='Dr. G. Suneel Kumar', designation='Professor'),
]


@pytest.fixture
def snapshot(feedback_factory):
    ratings = [
        ('FAC001', 9), ('FAC001', 8), ('FAC001', 10),
        ('FAC002', 5), ('FAC002', 6),
        ('FAC003', 7),
    ]
    records = [
        feedback_factory(student_id=f's{index}', faculty_id=faculty_id, overall_rating=rating)
        for index, (faculty_id, rating) in enumerate(ratings)
    ]
    return compute_snapshot(records, faculty=FACULTY)


def _json(report) -> object:
    return json.loads(report.content.decode('utf-8'))


def test_summary_report_on_empty_collection_has_no_nan() -> None:
    report = format_report(compute_snapshot([]), 'json', 'summary', today=REPORT_DAY)

    payload = _json(report)
    assert payload['total_feedback_submissions'] == 0
    assert payload['overall_satisfaction_rating'] == 0
    assert payload['satisfaction_rate'] == 0
    assert payload['improvement_rate'] == 0
    assert 'NaN' not in report.content.decode('utf-8')


def test_summary_report_rates(snapshot) -> None:
    payload = _json(format_report(snapshot, 'json', 'summary', today=REPORT_DAY))

    assert payload['total_feedback_submissions'] == 6
    assert payload['overall_satisfaction_rating'] == 7.5
    # 9, 8, 10 and 7 are satisfied; only 5 is below 6.
    assert payload['satisfaction_rate'] == round(4 / 6, 4)
    assert payload['improvement_rate'] == round(1 / 6, 4)
    assert payload['faculty_evaluated'] == 3


def test_complete_report_contains_full_snapshot(snapshot) -> None:
    report = format_report(snapshot, 'json', 'complete', today=REPORT_DAY)

    payload = _json(report)
    assert report.filename == 'feedback-report-2024-11-05.json'
    assert report.media_type == 'application/json'
    assert 'generated_at' in payload
    assert payload['total_feedback_count'] == 6
    assert len(payload['rating_distribution']) == 10
    assert payload['faculty_ratings'][0]['faculty_id'] == 'FAC001'


def test_faculty_report_summarises_best_and_worst(snapshot) -> None:
    payload = _json(format_report(snapshot, 'json', 'faculty', today=REPORT_DAY))

    assert [rating['faculty_id'] for rating in payload['faculty_ratings']] == ['FAC001', 'FAC003', 'FAC002']
    assert payload['summary'] == {
        'faculty_count': 3,
        'highest_rated_faculty': 'Dr. G. Sreedhar',
        'highest_rating': 9.0,
        'lowest_rated_faculty': 'Ms. B. Swetha',
        'lowest_rating': 5.5,
    }


def test_faculty_report_on_empty_snapshot() -> None:
    payload = _json(format_report(compute_snapshot([]), 'json', 'faculty'))

    assert payload['faculty_ratings'] == []
    assert payload['summary']['highest_rated_faculty'] is None
    assert payload['summary']['lowest_rating'] == 0


def test_department_report_groups_by_designation(snapshot) -> None:
    payload = _json(format_report(snapshot, 'json', 'department', today=REPORT_DAY))

    assert payload == [
        {'department': 'Assistant Professor', 'faculty_count': 1, 'feedback_count': 2, 'avg_rating': 5.5},
        {'department': 'Professor', 'faculty_count': 2, 'feedback_count': 4, 'avg_rating': 8.0},
    ]


def test_unrated_faculty_do_not_skew_faculty_or_department_reports(feedback_factory) -> None:
    records = [
        feedback_factory(student_id='s1', faculty_id='FAC001', overall_rating=9),
        feedback_factory(student_id='s2', faculty_id='FAC003', overall_rating=None),
    ]
    snapshot = compute_snapshot(records, faculty=FACULTY)

    assert [(rating.faculty_id, rating.rated_count) for rating in snapshot.faculty_ratings] == [
        ('FAC001', 1),
        ('FAC003', 0),
    ]

    department = _json(format_report(snapshot, 'json', 'department', today=REPORT_DAY))
    assert department == [
        {'department': 'Professor', 'faculty_count': 2, 'feedback_count': 2, 'avg_rating': 9.0},
    ]

    summary = _json(format_report(snapshot, 'json', 'faculty', today=REPORT_DAY))['summary']
    assert summary['faculty_count'] == 2
    assert summary['highest_rated_faculty'] == 'Dr. G. Sreedhar'
    assert summary['lowest_rated_faculty'] == 'Dr. G. Sreedhar'
    assert summary['lowest_rating'] == 9.0


def test_department_with_only_unrated_faculty_averages_zero(feedback_factory) -> None:
    snapshot = compute_snapshot(
        [feedback_factory(student_id='s1', faculty_id='FAC002', overall_rating=None)],
        faculty=FACULTY,
    )

    payload = _json(format_report(snapshot, 'json', 'department', today=REPORT_DAY))

    assert payload == [
        {'department': 'Assistant Professor', 'faculty_count': 1, 'feedback_count': 1, 'avg_rating': 0.0},
    ]


@pytest.mark.parametrize(
    ('report_type', 'filename'),
    [
        ('complete', 'feedback-report-2024-11-05.csv'),
        ('faculty', 'faculty-performance-2024-11-05.csv'),
        ('summary', 'feedback-summary-2024-11-05.csv'),
        ('department', 'department-analysis-2024-11-05.csv'),
    ],
)
def test_csv_exports_use_dated_filenames(snapshot, report_type: str, filename: str) -> None:
    report = format_report(snapshot, 'csv', report_type, today=REPORT_DAY)

    assert report.filename == filename
    assert report.media_type == 'text/csv'
    assert report.content


def test_faculty_csv_has_header_and_one_row_per_faculty(snapshot) -> None:
    report = format_report(snapshot, 'csv', 'faculty', today=REPORT_DAY)

    rows = list(csv.reader(io.StringIO(report.content.decode('utf-8'))))
    assert rows[0] == ['faculty_id', 'faculty_name', 'designation', 'avg_rating', 'feedback_count']
    assert rows[1] == ['FAC001', 'Dr. G. Sreedhar', 'Professor', '9.0', '3']
    assert len(rows) == 4


def test_format_report_rejects_unknown_report() -> None:
    with pytest.raises(InvalidRequest):
        format_report(compute_snapshot([]), 'xml', 'summary')

    with pytest.raises(InvalidRequest):
        format_report(compute_snapshot([]), 'json', 'quarterly')


def test_feedback_records_export_masks_anonymous_students(feedback_factory) -> None:
    records = [
        feedback_factory(id='fb-1', student_id='student-7', is_anonymous=True, positive_feedback='Engaging'),
        feedback_factory(id='fb-2', student_id='student-8', is_anonymous=False, faculty_id='FAC002'),
    ]

    report = format_feedback_records(records, 'json', faculty=FACULTY, today=REPORT_DAY)

    rows = _json(report)
    assert report.filename == 'feedback-records-2024-11-05.json'
    assert rows[0]['student_id'] == 'Anonymous'
    assert rows[0]['faculty_name'] == 'Dr. G. Sreedhar'
    assert rows[0]['positive_feedback'] == 'Engaging'
    assert rows[1]['student_id'] == 'student-8'
    assert rows[1]['submitted_at'] == '2024-09-15T10:00:00+00:00'


def test_feedback_records_csv_export(feedback_factory) -> None:
    report = format_feedback_records([feedback_factory(id='fb-1')], 'csv', today=REPORT_DAY)

    rows = list(csv.DictReader(io.StringIO(report.content.decode('utf-8'))))
    assert report.media_type == 'text/csv'
    assert rows[0]['id'] == 'fb-1'
    assert rows[0]['student_id'] == 'Anonymous'
    assert rows[0]['overall_rating'] == '8'
    assert rows[0]['suggestions_for_improvement'] == ''
