from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from academy.db.session import Base


class CourseStudent(Base):
    """Enrolment of a user (as student) in a course."""

    __tablename__ = "course_students"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="RESTRICT"), nullable=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    course = relationship("Course", back_populates="course_students")
    student = relationship("User", back_populates="course_students")
    assignment_grades = relationship(
        "AssignmentGrade", back_populates="course_student", passive_deletes=True, order_by="AssignmentGrade.id"
    )
