"""Structural checks applied to a feedback submission before it is stored.

Rules run in a fixed order and the first failure wins:

1. identifying fields are present and non-blank (``MissingField``)
2. ratings are whole numbers in ``[1, 10]`` (``OutOfRange``); ``overall_rating``
   must be present (``MissingField``)
3. free text is trimmed and blank text becomes ``None``
4. the submission key is not already taken (``DuplicateSubmission``)
"""

from collections.abc import Container, Mapping
from dataclasses import dataclass
from typing import Any

from feedback_portal.core.errors import DuplicateSubmission, MissingField, OutOfRange
from feedback_portal.models.feedback import RATING_FIELDS, TEXT_FIELDS

MIN_RATING = 1
MAX_RATING = 10

REQUIRED_FIELDS = ('faculty_id', 'student_id', 'subject_name', 'semester', 'academic_year')
REQUIRED_RATINGS = ('overall_rating',)

SubmissionKey = tuple[str, str, str, str, str]


@dataclass(frozen=True)
class ValidatedFeedback:
    student_id: str
    faculty_id: str
    subject_name: str
    semester: str
    academic_year: str
    teaching_effectiveness: int | None = None
    course_content: int | None = None
    communication_skills: int | None = None
    punctuality: int | None = None
    student_interaction: int | None = None
    overall_rating: int | None = None
    positive_feedback: str | None = None
    suggestions_for_improvement: str | None = None
    additional_comments: str | None = None
    is_anonymous: bool = True

    @property
    def key(self) -> SubmissionKey:
        return submission_key(self)

    def as_record_fields(self) -> dict[str, Any]:
        return {
            'student_id': self.student_id,
            'faculty_id': self.faculty_id,
            'subject_name': self.subject_name,
            'semester': self.semester,
            'academic_year': self.academic_year,
            **{field: getattr(self, field) for field in RATING_FIELDS},
            **{field: getattr(self, field) for field in TEXT_FIELDS},
            'is_anonymous': self.is_anonymous,
        }


def submission_key(record: Any) -> SubmissionKey:
    """Uniqueness key for a submission; accepts mappings or attribute objects."""
    if isinstance(record, Mapping):
        values = [record.get(field) for field in REQUIRED_FIELDS]
    else:
        values = [getattr(record, field, None) for field in REQUIRED_FIELDS]
    faculty_id, student_id, subject_name, semester, academic_year = (
        _normalize_text(value) or '' for value in values
    )
    return (student_id, faculty_id, subject_name, semester, academic_year)


def is_valid_rating(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_RATING <= value <= MAX_RATING


def _normalize_text(value: Any) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip()
    return normalized or None


def validate_submission(
    candidate: Mapping[str, Any],
    existing_keys: Container[SubmissionKey] = (),
) -> ValidatedFeedback:
    required: dict[str, str] = {}
    for field in REQUIRED_FIELDS:
        value = _normalize_text(candidate.get(field))
        if value is None:
            raise MissingField(field)
        required[field] = value

    ratings: dict[str, int | None] = {}
    for field in RATING_FIELDS:
        value = candidate.get(field)
        if value is None:
            ratings[field] = None
            continue
        if not is_valid_rating(value):
            raise OutOfRange(field)
        ratings[field] = value

    for field in REQUIRED_RATINGS:
        if ratings[field] is None:
            raise MissingField(field)

    texts = {field: _normalize_text(candidate.get(field)) for field in TEXT_FIELDS}

    is_anonymous = candidate.get('is_anonymous')
    validated = ValidatedFeedback(
        **required,
        **ratings,
        **texts,
        is_anonymous=True if is_anonymous is None else bool(is_anonymous),
    )

    if validated.key in existing_keys:
        raise DuplicateSubmission()

    return validated
