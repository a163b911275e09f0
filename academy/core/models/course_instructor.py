from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from academy.db.session import Base


class CourseInstructor(Base):
    """
    Assignment of a user (as instructor) to a course.
    At most one per course is expected to be primary; this is not enforced.
    """

    __tablename__ = "course_instructors"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="RESTRICT"), nullable=True)
    instructor_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=True)
    primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    course = relationship("Course", back_populates="course_instructors")
    instructor = relationship("User", back_populates="course_instructors")
