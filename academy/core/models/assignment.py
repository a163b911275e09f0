from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from academy.core.validation import NotBefore, Uniqueness, presence
from academy.db.session import Base


class Assignment(Base):
    """Graded work in a course. Removed together with its course."""

    __tablename__ = "assignments"
    __table_args__ = (
        UniqueConstraint("course_id", "name", name="uq_assignments_course_name"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    percent_of_grade = Column(Float, nullable=False)  # 0.25 == 25%
    active_at = Column(DateTime, nullable=True)
    due_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    course = relationship("Course", back_populates="assignments")
    assignment_grades = relationship(
        "AssignmentGrade", back_populates="assignment", passive_deletes=True, order_by="AssignmentGrade.id"
    )
    pre_class_lessons = relationship(
        "Lesson",
        back_populates="pre_class_assignment",
        foreign_keys="Lesson.pre_class_assignment_id",
        passive_deletes=True,
        order_by="Lesson.id",
    )
    in_class_lessons = relationship(
        "Lesson",
        back_populates="in_class_assignment",
        foreign_keys="Lesson.in_class_assignment_id",
        passive_deletes=True,
        order_by="Lesson.id",
    )

    validations = (
        *presence("name", "course_id", "percent_of_grade"),
        Uniqueness("name", scope=("course_id",)),
        NotBefore("due_at", "active_at", "date cannot be before active at date."),
    )
