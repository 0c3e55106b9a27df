"""User model definitions."""

from sqlalchemy import Column, Integer, String
from marktracker.database import Base

ADMIN_ROLE = "admin"
TEACHER_ROLE = "teacher"
STUDENT_ROLE = "student"
ROLES = (ADMIN_ROLE, TEACHER_ROLE, STUDENT_ROLE)


class User(Base):
    """Represents an account of any role."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False)  # admin/teacher/student
    full_name = Column(String, default="")
    # NULLs never collide, so the constraint only binds users that have one.
    roll_number = Column(String, unique=True, index=True, nullable=True)
