"""Complaint model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text
from marktracker.database import Base

STATUS_SUBMITTED = "Submitted"
STATUS_RESOLVED = "Resolved"


class Complaint(Base):
    """Represents a complaint filed by a student."""
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)
    student_name = Column(String)
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default=STATUS_SUBMITTED)  # Submitted/Resolved
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
