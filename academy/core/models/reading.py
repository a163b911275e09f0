from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from academy.core.validation import URL_FORMAT, Format, presence
from academy.db.session import Base


class Reading(Base):
    __tablename__ = "readings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    order_number = Column(Integer, nullable=False)
    url = Column(String(2048), nullable=False)  # http:// or https:// only
    caption = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    lesson = relationship("Lesson", back_populates="readings")

    validations = (
        *presence("order_number", "lesson_id", "url"),
        Format("url", URL_FORMAT),
    )
