"""Course within a term. Owns assignments and lessons; enrolments and instructors block deletion."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from academy.core.validation import COURSE_CODE_FORMAT, Format, Uniqueness, presence
from academy.db.session import Base


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (
        # course_code is unique per term, not globally
        UniqueConstraint("term_id", "course_code", name="uq_courses_term_course_code"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="RESTRICT"), nullable=True)
    name = Column(String(255), nullable=False)
    course_code = Column(String(50), nullable=True)  # e.g. "ncc1701"
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    term = relationship("Term", back_populates="courses")
    course_students = relationship(
        "CourseStudent", back_populates="course", passive_deletes=True, order_by="CourseStudent.id"
    )
    course_instructors = relationship(
        "CourseInstructor", back_populates="course", passive_deletes=True, order_by="CourseInstructor.id"
    )
    assignments = relationship(
        "Assignment",
        back_populates="course",
        passive_deletes=True,
        order_by="(Assignment.due_at, Assignment.active_at, Assignment.id)",
    )
    lessons = relationship("Lesson", back_populates="course", passive_deletes=True, order_by="Lesson.id")
    students = relationship(
        "User",
        secondary="course_students",
        viewonly=True,
        order_by="(User.last_name, User.first_name)",
    )
    instructors = relationship("User", secondary="course_instructors", viewonly=True)

    validations = (
        *presence("name"),
        Format("course_code", COURSE_CODE_FORMAT),
        Uniqueness("course_code", scope=("term_id",)),
    )
