import pytest
from pydantic import ValidationError

from feedback_portal.core.errors import InvalidRequest, NotFound
from feedback_portal.models.course import CourseAssignment
from feedback_portal.routes.course_routes import (
    AssignmentCreateRequest,
    CourseCreateRequest,
    create_assignment,
    create_course,
    delete_assignment,
    list_courses,
)


def test_course_request_requires_text() -> None:
    with pytest.raises(ValidationError):
        CourseCreateRequest(course_id='  ', course_name='Databases')


def test_list_courses_includes_assignments(db, catalogue, admin_context) -> None:
    courses = list_courses(search=None, section=None, context=admin_context, db=db)

    assert [course.course_id for course in courses] == ['2305452', '23HS402']
    statistics = courses[1]
    assert [(a.faculty_id, a.faculty_name, a.section) for a in statistics.assignments] == [
        ('FAC001', 'Dr. G. Sreedhar', 'A'),
    ]


def test_list_courses_filters_by_search_and_section(db, catalogue, admin_context) -> None:
    by_name = list_courses(search='stack', section=None, context=admin_context, db=db)
    by_section = list_courses(search=None, section='B', context=admin_context, db=db)

    assert [course.course_id for course in by_name] == ['2305452']
    assert by_section == []


def test_create_course_rejects_duplicate_id(db, catalogue, admin_context) -> None:
    created = create_course(
        CourseCreateRequest(course_id='23CS501', course_name='Compiler Design'),
        context=admin_context,
        db=db,
    )

    assert created.assignments == []
    with pytest.raises(InvalidRequest):
        create_course(
            CourseCreateRequest(course_id='23CS501', course_name='Something Else'),
            context=admin_context,
            db=db,
        )


def test_create_assignment_for_new_section(db, catalogue, admin_context) -> None:
    assignment = create_assignment(
        AssignmentCreateRequest(course_id='23HS402', faculty_id='FAC002', section='B'),
        context=admin_context,
        db=db,
    )

    assert assignment.faculty_name == 'Ms. B. Swetha'
    assert assignment.semester == '3rd'
    assert db.query(CourseAssignment).count() == 3


def test_create_assignment_rejects_taken_offering(db, catalogue, admin_context) -> None:
    with pytest.raises(InvalidRequest):
        create_assignment(
            AssignmentCreateRequest(course_id='23HS402', faculty_id='FAC002', section='A'),
            context=admin_context,
            db=db,
        )


@pytest.mark.parametrize(
    ('course_id', 'faculty_id'),
    [('NOPE', 'FAC001'), ('23HS402', 'FAC999')],
)
def test_create_assignment_requires_known_course_and_faculty(
    db, catalogue, admin_context, course_id: str, faculty_id: str
) -> None:
    with pytest.raises(NotFound):
        create_assignment(
            AssignmentCreateRequest(course_id=course_id, faculty_id=faculty_id, section='C'),
            context=admin_context,
            db=db,
        )


def test_delete_assignment(db, catalogue, admin_context) -> None:
    assignment = db.query(CourseAssignment).filter(CourseAssignment.faculty_id == 'FAC002').one()

    delete_assignment(assignment.id, context=admin_context, db=db)

    assert db.query(CourseAssignment).count() == 1
    with pytest.raises(NotFound):
        delete_assignment(assignment.id, context=admin_context, db=db)
