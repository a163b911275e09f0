"""
Lessons form a tree through parent_lesson_id (a back-reference, not ownership).
Cycles are not prevented.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from academy.core.validation import presence
from academy.db.session import Base


class Lesson(Base):
    __tablename__ = "lessons"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=True)
    parent_lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="SET NULL"), nullable=True)
    pre_class_assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="SET NULL"), nullable=True)
    in_class_assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    course = relationship("Course", back_populates="lessons")
    parent_lesson = relationship("Lesson", remote_side=[id], back_populates="child_lessons")
    child_lessons = relationship(
        "Lesson", back_populates="parent_lesson", passive_deletes=True, order_by="Lesson.id"
    )
    pre_class_assignment = relationship(
        "Assignment", back_populates="pre_class_lessons", foreign_keys=[pre_class_assignment_id]
    )
    in_class_assignment = relationship(
        "Assignment", back_populates="in_class_lessons", foreign_keys=[in_class_assignment_id]
    )
    readings = relationship("Reading", back_populates="lesson", passive_deletes=True, order_by="Reading.id")

    validations = presence("name")
