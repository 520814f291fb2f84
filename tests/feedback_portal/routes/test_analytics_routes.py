from datetime import datetime, timezone

import pytest

from feedback_portal.core.errors import Forbidden, NotFound
from feedback_portal.routes.analytics_routes import get_analytics, get_faculty_analytics, get_overview


@pytest.fixture
def submissions(db, catalogue, feedback_factory):
    db.add_all([
        feedback_factory(student_id='s1', overall_rating=9),
        feedback_factory(student_id='s2', overall_rating=8),
        feedback_factory(
            student_id='s1',
            faculty_id='FAC002',
            subject_name='Full Stack Development',
            overall_rating=6,
            submitted_at=datetime(2024, 10, 2, 9, 0, tzinfo=timezone.utc),
        ),
    ])
    db.commit()


def test_admin_sees_all_feedback(db, submissions, admin_context) -> None:
    snapshot = get_analytics(context=admin_context, db=db)

    assert snapshot.total_feedback_count == 3
    assert snapshot.average_overall_rating == 7.67
    assert [rating.faculty_id for rating in snapshot.faculty_ratings] == ['FAC001', 'FAC002']
    assert snapshot.faculty_ratings[0].faculty_name == 'Dr. G. Sreedhar'
    assert [trend.month for trend in snapshot.monthly_trends] == ['2024-09', '2024-10']


def test_faculty_sees_only_own_feedback(db, submissions, faculty_context) -> None:
    snapshot = get_analytics(context=faculty_context, db=db)

    assert snapshot.total_feedback_count == 2
    assert snapshot.average_overall_rating == 8.5
    assert [rating.faculty_id for rating in snapshot.faculty_ratings] == ['FAC001']


def test_faculty_without_link_is_forbidden(db, context_factory) -> None:
    with pytest.raises(Forbidden):
        get_analytics(context=context_factory('faculty', faculty_id=None), db=db)


def test_overview_counts_catalogue(db, submissions, student, admin_context) -> None:
    overview = get_overview(context=admin_context, db=db)

    assert overview.total_feedback == 3
    assert overview.faculty_count == 2
    assert overview.course_count == 2
    assert overview.student_count == 1


def test_faculty_summary_for_own_record(db, submissions, faculty_context) -> None:
    summary = get_faculty_analytics('FAC001', context=faculty_context, db=db)

    assert summary.feedback_count == 2
    assert summary.overall_rating == 8.5
    assert [subject.subject_name for subject in summary.subjects] == ['Probability and Statistics']
    assert {band.label: band.count for band in summary.rating_bands}['9-10 (Excellent)'] == 1


def test_faculty_summary_scope_and_missing_faculty(db, submissions, faculty_context, admin_context) -> None:
    with pytest.raises(Forbidden):
        get_faculty_analytics('FAC002', context=faculty_context, db=db)
    with pytest.raises(NotFound):
        get_faculty_analytics('FAC999', context=admin_context, db=db)
