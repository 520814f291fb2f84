"""Reduce stored feedback into the analytics shown to faculty and admins.

Everything here is a pure function of its inputs and is recomputed in full on
every call; nothing is cached between requests.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo
from typing import Any

from pydantic import BaseModel

from feedback_portal.models.feedback import RATING_FIELDS

RATING_BUCKETS = range(1, 11)
UNKNOWN_FACULTY_NAME = 'Unknown Faculty'
UNKNOWN_DESIGNATION = 'Unassigned'

# (label, lowest rating, highest rating), best band first.
RATING_BANDS = (
    ('9-10 (Excellent)', 9, 10),
    ('7-8 (Good)', 7, 8),
    ('5-6 (Average)', 5, 6),
    ('1-4 (Poor)', 1, 4),
)


class FacultyRating(BaseModel):
    faculty_id: str
    faculty_name: str
    designation: str
    avg_rating: float
    feedback_count: int
    # Feedback carrying an overall_rating; avg_rating is meaningless when 0.
    rated_count: int = 0


class RatingBucket(BaseModel):
    rating_bucket: int
    count: int


class MonthlyTrend(BaseModel):
    month: str
    count: int
    avg_rating: float


class AnalyticsSnapshot(BaseModel):
    total_feedback_count: int
    average_overall_rating: float
    faculty_ratings: list[FacultyRating]
    rating_distribution: list[RatingBucket]
    monthly_trends: list[MonthlyTrend]


class CriterionScore(BaseModel):
    criterion: str
    score: float


class SubjectPerformance(BaseModel):
    subject_name: str
    feedback_count: int
    avg_rating: float


class RatingBand(BaseModel):
    label: str
    count: int


class FacultySummary(BaseModel):
    faculty_id: str
    feedback_count: int
    overall_rating: float
    criteria: list[CriterionScore]
    subjects: list[SubjectPerformance]
    rating_bands: list[RatingBand]


def mean(values: list[int]) -> float:
    """Arithmetic mean rounded to two places; 0 for an empty list."""
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


def _rating(record: Any, field: str) -> int | None:
    value = getattr(record, field, None)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _overall(record: Any) -> int | None:
    return _rating(record, 'overall_rating')


def submission_month(submitted_at: datetime, tz: tzinfo) -> str:
    # Stored timestamps without tzinfo are UTC.
    if submitted_at.tzinfo is None:
        submitted_at = submitted_at.replace(tzinfo=timezone.utc)
    return submitted_at.astimezone(tz).strftime('%Y-%m')


def _faculty_directory(faculty: Iterable[Any]) -> dict[str, tuple[str, str]]:
    return {
        member.faculty_id: (member.name or UNKNOWN_FACULTY_NAME, member.designation or UNKNOWN_DESIGNATION)
        for member in faculty
    }


def compute_faculty_ratings(records: list[Any], faculty: Iterable[Any] = ()) -> list[FacultyRating]:
    directory = _faculty_directory(faculty)
    counts: dict[str, int] = defaultdict(int)
    ratings: dict[str, list[int]] = defaultdict(list)

    for record in records:
        counts[record.faculty_id] += 1
        overall = _overall(record)
        if overall is not None:
            ratings[record.faculty_id].append(overall)

    unsorted = []
    for faculty_id, feedback_count in counts.items():
        values = ratings[faculty_id]
        raw_mean = sum(values) / len(values) if values else 0.0
        name, designation = directory.get(faculty_id, (UNKNOWN_FACULTY_NAME, UNKNOWN_DESIGNATION))
        unsorted.append((raw_mean, faculty_id, name, designation, feedback_count, values))

    unsorted.sort(key=lambda item: (-item[0], item[1]))
    return [
        FacultyRating(
            faculty_id=faculty_id,
            faculty_name=name,
            designation=designation,
            avg_rating=mean(values),
            feedback_count=feedback_count,
            rated_count=len(values),
        )
        for _, faculty_id, name, designation, feedback_count, values in unsorted
    ]


def compute_rating_distribution(records: list[Any]) -> list[RatingBucket]:
    counts = {bucket: 0 for bucket in RATING_BUCKETS}
    for record in records:
        overall = _overall(record)
        if overall in counts:
            counts[overall] += 1
    return [RatingBucket(rating_bucket=bucket, count=count) for bucket, count in counts.items()]


def compute_monthly_trends(records: list[Any], tz: tzinfo) -> list[MonthlyTrend]:
    counts: dict[str, int] = defaultdict(int)
    ratings: dict[str, list[int]] = defaultdict(list)

    for record in records:
        if record.submitted_at is None:
            continue
        month = submission_month(record.submitted_at, tz)
        counts[month] += 1
        overall = _overall(record)
        if overall is not None:
            ratings[month].append(overall)

    return [
        MonthlyTrend(month=month, count=counts[month], avg_rating=mean(ratings[month]))
        for month in sorted(counts)
    ]


def compute_snapshot(
    records: Iterable[Any],
    faculty: Iterable[Any] = (),
    tz: tzinfo | None = None,
) -> AnalyticsSnapshot:
    """Aggregate feedback records into an analytics snapshot.

    ``records`` may be ORM rows or any objects exposing the feedback columns as
    attributes. ``faculty`` supplies display names and designations keyed by
    ``faculty_id``. ``tz`` is the reporting timezone for monthly trends and
    defaults to UTC.
    """
    records = list(records)
    tz = tz or timezone.utc
    overall_ratings = [value for value in (_overall(record) for record in records) if value is not None]

    return AnalyticsSnapshot(
        total_feedback_count=len(records),
        average_overall_rating=mean(overall_ratings),
        faculty_ratings=compute_faculty_ratings(records, faculty),
        rating_distribution=compute_rating_distribution(records),
        monthly_trends=compute_monthly_trends(records, tz),
    )


def compute_faculty_summary(records: Iterable[Any], faculty_id: str) -> FacultySummary:
    """Per-criterion, per-subject and banded view of one faculty member's feedback."""
    own = [record for record in records if record.faculty_id == faculty_id]

    criteria = []
    for field in RATING_FIELDS:
        values = [value for value in (_rating(record, field) for record in own) if value is not None]
        criteria.append(CriterionScore(criterion=field, score=mean(values)))

    by_subject: dict[str, list[Any]] = defaultdict(list)
    for record in own:
        by_subject[record.subject_name].append(record)
    subjects = [
        SubjectPerformance(
            subject_name=subject_name,
            feedback_count=len(subject_records),
            avg_rating=mean([value for value in map(_overall, subject_records) if value is not None]),
        )
        for subject_name, subject_records in sorted(by_subject.items())
    ]

    overall_ratings = [value for value in map(_overall, own) if value is not None]
    rating_bands = [
        RatingBand(label=label, count=sum(1 for value in overall_ratings if low <= value <= high))
        for label, low, high in RATING_BANDS
    ]

    return FacultySummary(
        faculty_id=faculty_id,
        feedback_count=len(own),
        overall_rating=mean(overall_ratings),
        criteria=criteria,
        subjects=subjects,
        rating_bands=rating_bands,
    )
