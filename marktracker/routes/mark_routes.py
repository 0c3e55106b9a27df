import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query as OrmQuery, Session

from marktracker.auth.dependencies import TokenClaims, require_any_role, require_teacher
from marktracker.core.exceptions import DuplicateMark, NotFound, Unauthorized, UnknownStudent
from marktracker.database import get_db
from marktracker.models.mark import Mark
from marktracker.models.user import STUDENT_ROLE, TEACHER_ROLE, User
from marktracker.schemas import CamelModel, MessageResponse

router = APIRouter(tags=['marks'])

logger = logging.getLogger(__name__)

MIN_MARKS = 0
MAX_MARKS = 100
LIKE_ESCAPE = '\\'


class CreateMarkRequest(CamelModel):
    roll_number: str = Field(min_length=1)
    marks: float = Field(ge=MIN_MARKS, le=MAX_MARKS)
    subject: str = Field(min_length=1)

    @field_validator('roll_number', 'subject')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized


class UpdateMarkRequest(CamelModel):
    roll_number: str | None = None
    marks: float | None = Field(default=None, ge=MIN_MARKS, le=MAX_MARKS)
    subject: str | None = None

    @field_validator('roll_number', 'subject')
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field cannot be blank.')
        return normalized


class MarkResponse(CamelModel):
    id: int
    roll_number: str
    student_name: str | None = None
    marks: float
    subject: str
    teacher_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )


def apply_search(query: OrmQuery, search: str | None) -> OrmQuery:
    """Case-insensitive substring match on roll number, student name or subject."""
    term = (search or '').strip()
    if not term:
        return query

    pattern = f'%{escape_like(term)}%'
    return query.filter(
        or_(
            Mark.roll_number.ilike(pattern, escape=LIKE_ESCAPE),
            Mark.student_name.ilike(pattern, escape=LIKE_ESCAPE),
            Mark.subject.ilike(pattern, escape=LIKE_ESCAPE),
        )
    )


def find_student(db: Session, roll_number: str) -> User:
    student = db.query(User).filter(
        User.roll_number == roll_number,
        User.role == STUDENT_ROLE,
    ).first()
    if student is None:
        raise UnknownStudent()
    return student


def get_owned_mark(db: Session, mark_id: int, claims: TokenClaims) -> Mark:
    mark = db.get(Mark, mark_id)
    if mark is None:
        raise NotFound('Mark record not found.')
    if mark.teacher_id != claims.id:
        raise Unauthorized()
    return mark


def list_joined_marks(db: Session, claims: TokenClaims, search: str | None) -> list[MarkResponse]:
    # Left join so records whose student no longer exists are still listed.
    query = db.query(Mark, User.full_name).outerjoin(User, User.roll_number == Mark.roll_number)
    if claims.role == TEACHER_ROLE:
        query = query.filter(Mark.teacher_id == claims.id)
    query = apply_search(query, search)

    return [
        MarkResponse(
            id=mark.id,
            roll_number=mark.roll_number,
            student_name=full_name,
            marks=mark.marks,
            subject=mark.subject,
            teacher_id=mark.teacher_id,
            created_at=mark.created_at,
            updated_at=mark.updated_at,
        )
        for mark, full_name in query.order_by(Mark.id.asc()).all()
    ]


@router.get('/studentmarks', response_model=list[MarkResponse])
def list_marks(
    search: str | None = Query(default=None),
    claims: TokenClaims = Depends(require_any_role),
    db: Session = Depends(get_db),
):
    if claims.role != STUDENT_ROLE:
        return list_joined_marks(db, claims, search)

    if not claims.roll_number:
        return []

    query = db.query(Mark).filter(Mark.roll_number == claims.roll_number)
    return apply_search(query, search).order_by(Mark.id.asc()).all()


@router.post('/studentmarks', response_model=MarkResponse, status_code=status.HTTP_201_CREATED)
def create_mark(
    data: CreateMarkRequest,
    claims: TokenClaims = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    student = find_student(db, data.roll_number)

    mark = Mark(
        roll_number=data.roll_number,
        student_name=student.full_name or '',
        marks=data.marks,
        subject=data.subject,
        teacher_id=claims.id,
    )
    db.add(mark)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateMark(data.roll_number, data.subject) from exc
    db.refresh(mark)

    logger.info('Teacher %s added %s mark for %s', claims.username, mark.subject, mark.roll_number)
    return mark


@router.put('/studentmarks/{mark_id}', response_model=MarkResponse)
def update_mark(
    mark_id: int,
    data: UpdateMarkRequest,
    claims: TokenClaims = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    mark = get_owned_mark(db, mark_id, claims)

    if data.roll_number and data.roll_number != mark.roll_number:
        student = find_student(db, data.roll_number)
        mark.roll_number = student.roll_number
        mark.student_name = student.full_name or ''
    if data.subject:
        mark.subject = data.subject
    if data.marks is not None:
        mark.marks = data.marks

    roll_number, subject = mark.roll_number, mark.subject
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateMark(roll_number, subject) from exc
    db.refresh(mark)

    return mark


@router.delete('/studentmarks/{mark_id}', response_model=MessageResponse)
def delete_mark(
    mark_id: int,
    claims: TokenClaims = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    mark = get_owned_mark(db, mark_id, claims)
    db.delete(mark)
    db.commit()

    logger.info('Teacher %s deleted mark %s', claims.username, mark_id)
    return MessageResponse(message='Mark record deleted')
