"""Unauthenticated helpers for seeding a fresh installation."""

from fastapi import APIRouter, Depends, status
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from marktracker.database import get_db
from marktracker.models.user import ADMIN_ROLE, STUDENT_ROLE
from marktracker.routes.user_routes import create_account
from marktracker.schemas import CamelModel, MessageResponse

router = APIRouter(tags=['bootstrap'])


class RegisterAdminRequest(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator('username')
    @classmethod
    def validate_username(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Username is required.')
        return normalized


class RegisterTestStudentRequest(RegisterAdminRequest):
    full_name: str | None = None
    roll_number: str | None = None


@router.post('/registerAdmin', response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register_admin(data: RegisterAdminRequest, db: Session = Depends(get_db)):
    create_account(db, username=data.username, password=data.password, role=ADMIN_ROLE)
    return MessageResponse(message='Admin user created')


@router.post('/registerTestStudent', response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register_test_student(data: RegisterTestStudentRequest, db: Session = Depends(get_db)):
    create_account(
        db,
        username=data.username,
        password=data.password,
        role=STUDENT_ROLE,
        full_name=(data.full_name or '').strip() or data.username,
        roll_number=(data.roll_number or '').strip() or data.username,
    )
    return MessageResponse(message='Test student user created successfully')
