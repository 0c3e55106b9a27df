import logging
from typing import Literal

from fastapi import APIRouter, Depends, status
from pydantic import Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marktracker.auth.dependencies import TokenClaims, require_admin
from marktracker.auth.passwords import hash_password
from marktracker.core.exceptions import (
    DuplicateRollNumber,
    DuplicateUsername,
    ForbiddenSelfDelete,
    NotFound,
    WeakPassword,
)
from marktracker.database import get_db
from marktracker.models.user import ADMIN_ROLE, STUDENT_ROLE, TEACHER_ROLE, User
from marktracker.schemas import CamelModel, MessageResponse

router = APIRouter(tags=['users'], dependencies=[Depends(require_admin)])

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
ROLL_NUMBER_TAKEN = 'That Roll Number is already assigned to another user.'

Role = Literal[ADMIN_ROLE, TEACHER_ROLE, STUDENT_ROLE]


def _strip(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip()


class CreateUserRequest(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    role: Role
    full_name: str | None = None
    roll_number: str | None = None

    @field_validator('username')
    @classmethod
    def validate_username(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Username is required.')
        return normalized

    @field_validator('full_name')
    @classmethod
    def normalize_full_name(cls, value: str | None) -> str | None:
        return _strip(value)

    @field_validator('roll_number')
    @classmethod
    def normalize_roll_number(cls, value: str | None) -> str | None:
        return _strip(value) or None


class UpdateUserRequest(CamelModel):
    role: Role | None = None
    full_name: str | None = None
    roll_number: str | None = None

    @field_validator('full_name', 'roll_number')
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return _strip(value) or None


class UpdatePasswordRequest(CamelModel):
    new_password: str | None = None


class UserCreatedResponse(CamelModel):
    message: str = 'User created successfully'
    id: int
    username: str
    role: str


class UserResponse(CamelModel):
    id: int
    username: str
    role: str
    full_name: str | None = None
    roll_number: str | None = None


class UserRecordResponse(UserResponse):
    hashed_password: str


class UserUpdatedResponse(CamelModel):
    message: str
    user: UserResponse


def ensure_identity_available(db: Session, username: str, roll_number: str | None) -> None:
    """Fast-path duplicate check; the unique indexes remain the real guard."""
    if db.query(User.id).filter(User.username == username).first():
        raise DuplicateUsername()
    if roll_number and db.query(User.id).filter(User.roll_number == roll_number).first():
        raise DuplicateRollNumber()


def create_account(
    db: Session,
    *,
    username: str,
    password: str,
    role: str,
    full_name: str | None = None,
    roll_number: str | None = None,
) -> User:
    ensure_identity_available(db, username, roll_number)

    user = User(
        username=username,
        hashed_password=hash_password(password),
        role=role,
        full_name=full_name or '',
        roll_number=roll_number,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent insert.
        db.rollback()
        if db.query(User.id).filter(User.username == username).first():
            raise DuplicateUsername() from exc
        raise DuplicateRollNumber() from exc
    db.refresh(user)

    logger.info('Created %s account %s', role, username)
    return user


def ensure_roll_number_available(db: Session, roll_number: str, user_id: int) -> None:
    taken = db.query(User.id).filter(
        User.roll_number == roll_number,
        User.id != user_id,
    ).first()
    if taken:
        raise DuplicateRollNumber(ROLL_NUMBER_TAKEN)


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound('User not found.')
    return user


@router.post('/users', response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_user(data: CreateUserRequest, db: Session = Depends(get_db)):
    user = create_account(
        db,
        username=data.username,
        password=data.password,
        role=data.role,
        full_name=data.full_name,
        roll_number=data.roll_number,
    )
    return UserCreatedResponse(id=user.id, username=user.username, role=user.role)


@router.get('/users', response_model=list[UserRecordResponse])
def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.id.asc()).all()


@router.put('/users/password/{user_id}', response_model=MessageResponse)
def update_user_password(user_id: int, data: UpdatePasswordRequest, db: Session = Depends(get_db)):
    if not data.new_password or len(data.new_password) < MIN_PASSWORD_LENGTH:
        raise WeakPassword()

    user = get_user_or_404(db, user_id)
    user.hashed_password = hash_password(data.new_password)
    db.commit()

    logger.info('Password reset for %s', user.username)
    return MessageResponse(message='Password updated successfully.')


@router.put('/users/{user_id}', response_model=UserUpdatedResponse)
def update_user(user_id: int, data: UpdateUserRequest, db: Session = Depends(get_db)):
    user = get_user_or_404(db, user_id)

    if data.roll_number:
        ensure_roll_number_available(db, data.roll_number, user_id)

    if data.role:
        user.role = data.role
    if data.full_name:
        user.full_name = data.full_name
    if data.roll_number:
        user.roll_number = data.roll_number

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateRollNumber(ROLL_NUMBER_TAKEN) from exc
    db.refresh(user)

    return UserUpdatedResponse(
        message='User updated successfully',
        user=UserResponse.model_validate(user),
    )


@router.delete('/users/{user_id}', response_model=MessageResponse)
def delete_user(
    user_id: int,
    claims: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if claims.id == user_id:
        raise ForbiddenSelfDelete()

    user = get_user_or_404(db, user_id)
    username = user.username
    db.delete(user)
    db.commit()

    logger.info('Deleted user %s', username)
    return MessageResponse(message='User deleted successfully.')
