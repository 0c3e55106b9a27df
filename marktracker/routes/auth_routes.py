import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from marktracker.auth import jwt_handler
from marktracker.auth.passwords import verify_password
from marktracker.core.exceptions import InvalidCredentials
from marktracker.database import get_db
from marktracker.models.user import User
from marktracker.schemas import CamelModel

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(CamelModel):
    token: str
    role: str
    username: str
    full_name: str | None = None
    roll_number: str | None = None


def build_claims(user: User) -> dict:
    return {
        'id': user.id,
        'role': user.role,
        'username': user.username,
        'fullName': user.full_name,
        'rollNumber': user.roll_number,
    }


@router.post('/login', response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == data.username.strip()).first()

    # Same error for an unknown user and a wrong password.
    if user is None or not verify_password(data.password, user.hashed_password):
        logger.info('Failed login for %s', data.username)
        raise InvalidCredentials()

    token = jwt_handler.create_access_token(build_claims(user))
    logger.info('User %s logged in as %s', user.username, user.role)

    return LoginResponse(
        token=token,
        role=user.role,
        username=user.username,
        full_name=user.full_name,
        roll_number=user.roll_number,
    )
