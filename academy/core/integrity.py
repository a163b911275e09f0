"""
Delete policies and deletion planning.

Removing a record is planned before anything is touched: the plan walks every
cascade, gathers every restrict violation, and lists the rows to delete
(children first) and the foreign keys to clear. Only a plan without errors is
applied.
"""

from dataclasses import dataclass, field
from typing import Any, List, Set, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

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
from academy.core.validation import BASE, Errors

RESTRICT = "restrict"
CASCADE = "cascade"
NULLIFY = "nullify"


@dataclass(frozen=True)
class DeletePolicy:
    parent: type
    dependent: type
    foreign_key: str
    action: str
    label: str = ""

    @property
    def message(self) -> str:
        return f"Cannot delete record because dependent {self.label} exist"


DELETE_POLICIES: Tuple[DeletePolicy, ...] = (
    DeletePolicy(School, Term, "school_id", RESTRICT, "terms"),
    DeletePolicy(Term, Course, "term_id", RESTRICT, "courses"),
    DeletePolicy(Course, CourseStudent, "course_id", RESTRICT, "course students"),
    DeletePolicy(Course, CourseInstructor, "course_id", RESTRICT, "course instructors"),
    DeletePolicy(Course, Assignment, "course_id", CASCADE),
    DeletePolicy(Course, Lesson, "course_id", CASCADE),
    DeletePolicy(User, CourseStudent, "student_id", RESTRICT, "course students"),
    DeletePolicy(User, CourseInstructor, "instructor_id", RESTRICT, "course instructors"),
    DeletePolicy(Assignment, AssignmentGrade, "assignment_id", CASCADE),
    DeletePolicy(Assignment, Lesson, "pre_class_assignment_id", NULLIFY),
    DeletePolicy(Assignment, Lesson, "in_class_assignment_id", NULLIFY),
    DeletePolicy(CourseStudent, AssignmentGrade, "course_student_id", CASCADE),
    DeletePolicy(Lesson, Reading, "lesson_id", CASCADE),
    DeletePolicy(Lesson, Lesson, "parent_lesson_id", NULLIFY),
)


def policies_for(model: type) -> List[DeletePolicy]:
    return [policy for policy in DELETE_POLICIES if policy.parent is model]


@dataclass
class DeletionPlan:
    root: Any
    errors: Errors = field(default_factory=Errors)
    deletes: List[Any] = field(default_factory=list)
    nullify: List[Tuple[Any, str]] = field(default_factory=list)

    @property
    def allowed(self) -> bool:
        return not self.errors


async def plan_deletion(db: AsyncSession, record: Any) -> DeletionPlan:
    plan = DeletionPlan(root=record)
    await _visit(db, record, plan, set())
    return plan


async def _visit(db: AsyncSession, record: Any, plan: DeletionPlan, seen: Set[Tuple[type, int]]) -> None:
    key = (type(record), record.id)
    if key in seen:
        return
    seen.add(key)

    for policy in policies_for(type(record)):
        column = getattr(policy.dependent, policy.foreign_key)
        if policy.action == RESTRICT:
            count = (
                await db.execute(select(func.count()).select_from(policy.dependent).where(column == record.id))
            ).scalar_one()
            if count and policy.message not in plan.errors[BASE]:
                plan.errors.add(BASE, policy.message)
            continue

        result = await db.execute(
            select(policy.dependent).where(column == record.id).order_by(policy.dependent.id)
        )
        dependents = result.scalars().all()
        if policy.action == CASCADE:
            for dependent in dependents:
                await _visit(db, dependent, plan, seen)
        else:
            plan.nullify.extend((dependent, policy.foreign_key) for dependent in dependents)

    plan.deletes.append(record)


async def apply_deletion(db: AsyncSession, plan: DeletionPlan) -> None:
    """Clear foreign keys, then delete children before parents. The caller commits."""
    if not plan.allowed:
        raise ValueError("refusing to apply a deletion plan with errors")
    for dependent, foreign_key in plan.nullify:
        setattr(dependent, foreign_key, None)
    await db.flush()
    for record in plan.deletes:
        await db.delete(record)
        await db.flush()
