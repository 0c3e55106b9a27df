import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import field_validator
from sqlalchemy.orm import Session

from marktracker.auth.dependencies import TokenClaims, require_any_role, require_staff, require_student
from marktracker.core.exceptions import NotFound
from marktracker.database import get_db
from marktracker.models.complaint import STATUS_RESOLVED, STATUS_SUBMITTED, Complaint
from marktracker.models.user import STUDENT_ROLE, User
from marktracker.schemas import CamelModel

router = APIRouter(tags=['complaints'])

logger = logging.getLogger(__name__)


class CreateComplaintRequest(CamelModel):
    message: str

    @field_validator('message')
    @classmethod
    def validate_message(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Complaint message is required.')
        return normalized


class ComplaintResponse(CamelModel):
    id: int
    student_id: int
    student_name: str | None = None
    message: str
    status: str
    created_at: datetime | None = None


@router.post('/complaints', response_model=ComplaintResponse, status_code=status.HTTP_201_CREATED)
def create_complaint(
    data: CreateComplaintRequest,
    claims: TokenClaims = Depends(require_student),
    db: Session = Depends(get_db),
):
    student = db.get(User, claims.id)
    student_name = (student.full_name if student else None) or claims.username

    complaint = Complaint(
        student_id=claims.id,
        student_name=student_name,
        message=data.message,
        status=STATUS_SUBMITTED,
    )
    db.add(complaint)
    db.commit()
    db.refresh(complaint)

    logger.info('Complaint %s submitted by %s', complaint.id, claims.username)
    return complaint


@router.get('/complaints', response_model=list[ComplaintResponse])
def list_complaints(
    claims: TokenClaims = Depends(require_any_role),
    db: Session = Depends(get_db),
):
    query = db.query(Complaint)
    if claims.role == STUDENT_ROLE:
        query = query.filter(Complaint.student_id == claims.id)
    return query.order_by(Complaint.id.asc()).all()


@router.put('/complaints/{complaint_id}', response_model=ComplaintResponse)
def resolve_complaint(
    complaint_id: int,
    claims: TokenClaims = Depends(require_staff),
    db: Session = Depends(get_db),
):
    complaint = db.get(Complaint, complaint_id)
    if complaint is None:
        raise NotFound('Complaint not found.')

    complaint.status = STATUS_RESOLVED
    db.commit()
    db.refresh(complaint)

    logger.info('Complaint %s resolved by %s', complaint.id, claims.username)
    return complaint
