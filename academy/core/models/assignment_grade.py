from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer
from sqlalchemy.orm import relationship

from academy.db.session import Base


class AssignmentGrade(Base):
    __tablename__ = "assignment_grades"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=True)
    course_student_id = Column(Integer, ForeignKey("course_students.id", ondelete="CASCADE"), nullable=True)
    grade = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    assignment = relationship("Assignment", back_populates="assignment_grades")
    course_student = relationship("CourseStudent", back_populates="assignment_grades")
