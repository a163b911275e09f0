from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from academy.core import services
from academy.core.models import Assignment, AssignmentGrade, Course, CourseStudent, Lesson, School, Term
from academy.db.init_db import init_db


# One shared connection so every session sees the same in-memory database.
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory SQLite database with all tables created."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, future=True, poolclass=StaticPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest.fixture()
def make(db_session: AsyncSession):
    """Create a record and fail the test if validation rejects it."""

    async def factory(entity_type, **fields):
        result = await services.create(db_session, entity_type, fields)
        assert result.ok, result.messages
        return result.value

    return factory


@pytest.fixture()
async def academy(make) -> SimpleNamespace:
    """A school with two terms, two courses, graded assignments and a small lesson tree."""
    school = await make(School, name="Starfleet Academy")
    term = await make(
        Term, name="Fall Term", starts_on="2004-05-26", ends_on="2017-06-01", school=school
    )
    term_two = await make(
        Term, name="Spring Term", starts_on="1988-05-10", ends_on="2017-06-01", school=school
    )
    course = await make(Course, name="Advanced Subspace Geometry", term=term, course_code="ncc1701")
    course_two = await make(Course, name="Basic Warp Design", term=term, course_code="ncc74210")
    course_student = await make(CourseStudent, course=course)
    course_student_two = await make(CourseStudent, course=course)
    assignment = await make(
        Assignment, name="Cochrane Theory for Dummies", course=course,
        active_at="1933-01-23", due_at="1989-11-20", percent_of_grade=0.25,
    )
    assignment_two = await make(
        Assignment, name="Transwarp Initiatives for cleaner space lanes", course=course,
        active_at="1947-07-20", due_at="1982-08-15", percent_of_grade=0.52,
    )
    assignment_three = await make(
        Assignment, name="Test Assignment Three", course=course,
        active_at="1954-05-10", due_at="1989-11-20", percent_of_grade=0.34,
    )
    lesson = await make(Lesson, name="First Lesson", pre_class_assignment=assignment)
    lesson_two = await make(
        Lesson, name="Second Lesson", pre_class_assignment=assignment, parent_lesson=lesson
    )
    lesson_three = await make(Lesson, name="Third Lesson", parent_lesson=lesson)
    assignment_grade = await make(AssignmentGrade, assignment=assignment)
    assignment_grade_two = await make(AssignmentGrade, assignment=assignment)
    return SimpleNamespace(
        school=school,
        term=term,
        term_two=term_two,
        course=course,
        course_two=course_two,
        course_student=course_student,
        course_student_two=course_student_two,
        assignment=assignment,
        assignment_two=assignment_two,
        assignment_three=assignment_three,
        lesson=lesson,
        lesson_two=lesson_two,
        lesson_three=lesson_three,
        assignment_grade=assignment_grade,
        assignment_grade_two=assignment_grade_two,
    )
