from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from academy.core.validation import EMAIL_FORMAT, URL_FORMAT, Format, Uniqueness, presence
from academy.db.session import Base


class User(Base):
    """Person who takes part in courses as a student and/or an instructor."""

    __tablename__ = "users"
    __table_args__ = (
        # Email is unique across all users
        UniqueConstraint("email", name="uq_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    first_name = Column(String(255), nullable=False)
    middle_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    photo_url = Column(String(2048), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    course_students = relationship(
        "CourseStudent", back_populates="student", passive_deletes=True, order_by="CourseStudent.id"
    )
    course_instructors = relationship(
        "CourseInstructor", back_populates="instructor", passive_deletes=True, order_by="CourseInstructor.id"
    )

    validations = (
        *presence("first_name", "last_name", "email", "photo_url"),
        Format("email", EMAIL_FORMAT),
        Uniqueness("email"),
        Format("photo_url", URL_FORMAT),
    )
