"""Input schemas: coerce caller-supplied values into column types before validation."""

from datetime import date, datetime, time, timezone
from typing import Any, Dict, Mapping, Optional, Set, Tuple, Type

from pydantic import BaseModel, field_validator
from pydantic import ValidationError as PydanticValidationError

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
from academy.core.validation import BASE, INVALID, UNKNOWN, Errors


class EntityFields(BaseModel):
    """Every field optional; presence is a validation rule, not a schema concern."""

    class Config:
        extra = "forbid"


class SchoolFields(EntityFields):
    name: Optional[str] = None


class TermFields(EntityFields):
    school_id: Optional[int] = None
    name: Optional[str] = None
    starts_on: Optional[date] = None
    ends_on: Optional[date] = None


class CourseFields(EntityFields):
    term_id: Optional[int] = None
    name: Optional[str] = None
    course_code: Optional[str] = None


class CourseStudentFields(EntityFields):
    course_id: Optional[int] = None
    student_id: Optional[int] = None


class CourseInstructorFields(EntityFields):
    course_id: Optional[int] = None
    instructor_id: Optional[int] = None
    primary: Optional[bool] = None


class AssignmentFields(EntityFields):
    course_id: Optional[int] = None
    name: Optional[str] = None
    percent_of_grade: Optional[float] = None
    active_at: Optional[datetime] = None
    due_at: Optional[datetime] = None

    @field_validator("active_at", "due_at", mode="before")
    @classmethod
    def dates_as_midnight(cls, value: Any) -> Any:
        # A plain date ("1989-11-20" or date(1989, 11, 20)) means the start of that day.
        if isinstance(value, str) and len(value) == 10:
            try:
                value = date.fromisoformat(value)
            except ValueError:
                return value
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time.min)
        return value

    @field_validator("active_at", "due_at")
    @classmethod
    def stored_as_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class AssignmentGradeFields(EntityFields):
    assignment_id: Optional[int] = None
    course_student_id: Optional[int] = None
    grade: Optional[float] = None


class LessonFields(EntityFields):
    course_id: Optional[int] = None
    parent_lesson_id: Optional[int] = None
    pre_class_assignment_id: Optional[int] = None
    in_class_assignment_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None


class ReadingFields(EntityFields):
    lesson_id: Optional[int] = None
    order_number: Optional[int] = None
    url: Optional[str] = None
    caption: Optional[str] = None


class UserFields(EntityFields):
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None


FIELD_SCHEMAS: Dict[type, Type[EntityFields]] = {
    School: SchoolFields,
    Term: TermFields,
    Course: CourseFields,
    CourseStudent: CourseStudentFields,
    CourseInstructor: CourseInstructorFields,
    Assignment: AssignmentFields,
    AssignmentGrade: AssignmentGradeFields,
    Lesson: LessonFields,
    Reading: ReadingFields,
    User: UserFields,
}


def coerce_fields(model: type, fields: Mapping[str, Any], errors: Errors) -> Tuple[Dict[str, Any], Set[str]]:
    """
    Coerce ``fields`` with the model's schema.

    Returns the coerced values (only keys the caller supplied) and the names of
    fields that failed coercion; each failure is recorded in ``errors``.
    """
    schema = FIELD_SCHEMAS[model]
    try:
        return schema.model_validate(dict(fields)).model_dump(exclude_unset=True), set()
    except PydanticValidationError as exc:
        invalid: Set[str] = set()
        for error in exc.errors():
            field = str(error["loc"][0]) if error["loc"] else BASE
            if field in invalid:
                continue
            errors.add(field, UNKNOWN if error["type"] == "extra_forbidden" else INVALID)
            invalid.add(field)
    remaining = {key: value for key, value in fields.items() if key not in invalid}
    return schema.model_validate(remaining).model_dump(exclude_unset=True), invalid
