"""Mark record model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String, UniqueConstraint
from marktracker.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Mark(Base):
    """A single subject score for a student, owned by the teacher who entered it."""
    __tablename__ = "marks"
    __table_args__ = (
        UniqueConstraint("roll_number", "subject", name="uq_marks_roll_number_subject"),
    )

    id = Column(Integer, primary_key=True, index=True)
    roll_number = Column(String, nullable=False, index=True)
    # Copied from the student's profile when the record is created.
    student_name = Column(String, nullable=False, default="")
    marks = Column(Float, nullable=False)
    subject = Column(String, nullable=False)
    teacher_id = Column(Integer, index=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
