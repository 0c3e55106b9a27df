"""Token validation and role checks shared by every protected route."""

import logging
from collections.abc import Iterable

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError

from marktracker.auth import jwt_handler
from marktracker.core.exceptions import Forbidden, InvalidToken, Unauthenticated
from marktracker.models.user import ADMIN_ROLE, STUDENT_ROLE, TEACHER_ROLE
from marktracker.schemas import CamelModel

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class TokenClaims(CamelModel):
    id: int
    role: str
    username: str
    full_name: str | None = None
    roll_number: str | None = None


def is_role_allowed(role: str, allowed_roles: frozenset[str]) -> bool:
    """An empty role set admits any authenticated caller."""
    return not allowed_roles or role in allowed_roles


def decode_claims(token: str) -> TokenClaims:
    try:
        payload = jwt_handler.decode_access_token(token)
        return TokenClaims.model_validate(payload)
    except (jwt.PyJWTError, PydanticValidationError) as exc:
        raise InvalidToken() from exc


class RoleGuard:
    """FastAPI dependency admitting bearer tokens whose role is in ``allowed_roles``.

    Resolves to the decoded ``TokenClaims`` so handlers can read the caller's
    identity without touching the store.
    """

    def __init__(self, allowed_roles: Iterable[str] = ()):
        self.allowed_roles = frozenset(allowed_roles)

    def __call__(
        self,
        credentials: HTTPAuthorizationCredentials | None = Depends(security),
    ) -> TokenClaims:
        if credentials is None or not credentials.credentials:
            raise Unauthenticated()

        claims = decode_claims(credentials.credentials)
        if not is_role_allowed(claims.role, self.allowed_roles):
            logger.info('Rejected %s for role %s', claims.username, claims.role)
            raise Forbidden()
        return claims

    def __repr__(self) -> str:
        return f'RoleGuard({sorted(self.allowed_roles)!r})'


require_admin = RoleGuard({ADMIN_ROLE})
require_teacher = RoleGuard({TEACHER_ROLE})
require_student = RoleGuard({STUDENT_ROLE})
require_staff = RoleGuard({ADMIN_ROLE, TEACHER_ROLE})
require_any_role = RoleGuard({ADMIN_ROLE, TEACHER_ROLE, STUDENT_ROLE})
