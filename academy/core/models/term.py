from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from academy.core.validation import presence
from academy.db.session import Base


class Term(Base):
    __tablename__ = "terms"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    school_id = Column(Integer, ForeignKey("schools.id", ondelete="RESTRICT"), nullable=False)
    name = Column(String(255), nullable=False)
    starts_on = Column(Date, nullable=False)
    ends_on = Column(Date, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    school = relationship("School", back_populates="terms")
    courses = relationship("Course", back_populates="term", passive_deletes=True, order_by="Course.id")

    validations = presence("name", "starts_on", "ends_on", "school_id")
