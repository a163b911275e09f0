"""
Named relations per entity, resolved by explicit queries.

A to-many relation is either direct (the target holds ``foreign_key``) or runs
through a join entity (``through``). Each relation carries the sort key that
``fetch_related`` applies to the rows it reads.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy import Select, select

from academy.core.models import (
    Assignment,
    AssignmentGrade,
    Course,
    CourseInstructor,
    CourseStudent,
    Lesson,
    Reading,
    School,
    Term,
    User,
)
from academy.core.ordering import SortKey, assignment_order, by_identifier, child_lesson_order, student_order


@dataclass(frozen=True)
class Relation:
    name: str
    target: type
    query: Callable[[Any], Select]
    many: bool = True
    order: SortKey = by_identifier
    foreign_key: Optional[str] = None
    # (join model, column pointing at the owner, column pointing at the target)
    through: Optional[Tuple[type, str, str]] = None


def _has_many(name: str, target: type, foreign_key: str, order: SortKey = by_identifier) -> Relation:
    column = getattr(target, foreign_key)
    return Relation(
        name=name,
        target=target,
        query=lambda owner: select(target).where(column == owner.id).order_by(target.id),
        order=order,
        foreign_key=foreign_key,
    )


def _belongs_to(name: str, target: type, foreign_key: str) -> Relation:
    return Relation(
        name=name,
        target=target,
        query=lambda owner: select(target).where(target.id == getattr(owner, foreign_key)),
        many=False,
    )


def _has_many_through(
    name: str,
    target: type,
    join_model: type,
    owner_key: str,
    target_key: str,
    order: SortKey = by_identifier,
) -> Relation:
    owner_column = getattr(join_model, owner_key)
    target_column = getattr(join_model, target_key)
    return Relation(
        name=name,
        target=target,
        query=lambda owner: (
            select(target)
            .join(join_model, target_column == target.id)
            .where(owner_column == owner.id)
            .order_by(join_model.id)
        ),
        order=order,
        through=(join_model, owner_key, target_key),
    )


RELATIONS: Dict[type, Dict[str, Relation]] = {}


def _register(model: type, *relations: Relation) -> None:
    RELATIONS[model] = {relation.name: relation for relation in relations}


_register(
    School,
    _has_many("terms", Term, "school_id"),
    Relation(
        name="courses",
        target=Course,
        query=lambda school: (
            select(Course).join(Term, Course.term_id == Term.id).where(Term.school_id == school.id).order_by(Course.id)
        ),
    ),
)
_register(
    Term,
    _belongs_to("school", School, "school_id"),
    _has_many("courses", Course, "term_id"),
)
_register(
    Course,
    _belongs_to("term", Term, "term_id"),
    _has_many("course_students", CourseStudent, "course_id"),
    _has_many("course_instructors", CourseInstructor, "course_id"),
    _has_many("assignments", Assignment, "course_id", order=assignment_order),
    _has_many("lessons", Lesson, "course_id"),
    _has_many_through("students", User, CourseStudent, "course_id", "student_id", order=student_order),
    _has_many_through("instructors", User, CourseInstructor, "course_id", "instructor_id"),
    Relation(
        name="readings",
        target=Reading,
        query=lambda course: (
            select(Reading).join(Lesson, Reading.lesson_id == Lesson.id).where(Lesson.course_id == course.id).order_by(Reading.id)
        ),
    ),
)
_register(
    CourseStudent,
    _belongs_to("course", Course, "course_id"),
    _belongs_to("student", User, "student_id"),
    _has_many("assignment_grades", AssignmentGrade, "course_student_id"),
)
_register(
    CourseInstructor,
    _belongs_to("course", Course, "course_id"),
    _belongs_to("instructor", User, "instructor_id"),
)
_register(
    Assignment,
    _belongs_to("course", Course, "course_id"),
    _has_many("assignment_grades", AssignmentGrade, "assignment_id"),
    _has_many("pre_class_lessons", Lesson, "pre_class_assignment_id"),
    _has_many("in_class_lessons", Lesson, "in_class_assignment_id"),
)
_register(
    AssignmentGrade,
    _belongs_to("assignment", Assignment, "assignment_id"),
    _belongs_to("course_student", CourseStudent, "course_student_id"),
)
_register(
    Lesson,
    _belongs_to("course", Course, "course_id"),
    _belongs_to("parent_lesson", Lesson, "parent_lesson_id"),
    _belongs_to("pre_class_assignment", Assignment, "pre_class_assignment_id"),
    _belongs_to("in_class_assignment", Assignment, "in_class_assignment_id"),
    _has_many("child_lessons", Lesson, "parent_lesson_id", order=child_lesson_order),
    _has_many("readings", Reading, "lesson_id"),
)
_register(
    Reading,
    _belongs_to("lesson", Lesson, "lesson_id"),
)
_register(
    User,
    _has_many("course_students", CourseStudent, "student_id"),
    _has_many("course_instructors", CourseInstructor, "instructor_id"),
    _has_many_through("courses", Course, CourseStudent, "student_id", "course_id"),
    _has_many_through("taught_courses", Course, CourseInstructor, "instructor_id", "course_id"),
)
