from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from academy.core.validation import presence
from academy.db.session import Base


class School(Base):
    """Top of the hierarchy. A school cannot be removed while it still has terms."""

    __tablename__ = "schools"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    terms = relationship("Term", back_populates="school", passive_deletes=True, order_by="Term.id")

    validations = presence("name")
