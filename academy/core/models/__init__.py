from academy.core.models.school import School
from academy.core.models.term import Term
from academy.core.models.course import Course
from academy.core.models.course_student import CourseStudent
from academy.core.models.course_instructor import CourseInstructor
from academy.core.models.assignment import Assignment
from academy.core.models.assignment_grade import AssignmentGrade
from academy.core.models.lesson import Lesson
from academy.core.models.reading import Reading
from academy.core.models.user import User

# Names accepted wherever an entity type is expected.
ENTITY_TYPES = {
    "school": School,
    "term": Term,
    "course": Course,
    "course_student": CourseStudent,
    "course_instructor": CourseInstructor,
    "assignment": Assignment,
    "assignment_grade": AssignmentGrade,
    "lesson": Lesson,
    "reading": Reading,
    "user": User,
}

__all__ = [
    "Assignment",
    "AssignmentGrade",
    "Course",
    "CourseInstructor",
    "CourseStudent",
    "ENTITY_TYPES",
    "Lesson",
    "Reading",
    "School",
    "Term",
    "User",
]
