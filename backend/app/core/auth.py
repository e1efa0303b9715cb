"""
Authentication helpers for verifying bearer JWTs and resolving the caller identity.

Services never look up "the current user" on their own. Routers resolve a
CallerIdentity here and pass it explicitly into every mutating operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.exceptions import AuthorizationError
from app.core.security import decode_access_token
from app.database import get_db
from app.models import User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated actor performing an operation."""
    id: str
    name: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "CallerIdentity":
        return cls(id=user.id, name=user.name, role=UserRole(user.role))


def _unauthorized(detail: str = "Authentication required") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_bearer_token(request: Request) -> str:
    """
    Extract 'Bearer <token>' from Authorization header.
    """
    auth = request.headers.get("Authorization")
    if not auth:
        raise _unauthorized()

    parts = auth.split()
    if len(parts) != 2:
        raise _unauthorized("Invalid Authorization header format. Expected 'Bearer <token>'")

    scheme, token = parts
    if scheme.lower() != "bearer":
        raise _unauthorized("Invalid auth scheme. Expected 'Bearer'")

    return token


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency: returns the current authenticated User (SQLAlchemy object).

    - Reads Authorization: Bearer <token>
    - Verifies JWT
    - Loads the user named by the sub claim
    """
    token = _extract_bearer_token(request)
    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Token missing subject (sub)")

    user = db.get(User, str(user_id))
    if user is None:
        # Token outlived its user (admin deleted the account)
        logger.warning("Token for unknown user_id=%s on %s %s", user_id, request.method, request.url.path)
        raise _unauthorized("User not found")

    return user


def get_current_caller(user: User = Depends(get_current_user)) -> CallerIdentity:
    """FastAPI dependency: the caller identity threaded into service calls."""
    return CallerIdentity.from_user(user)


def get_admin_caller(caller: CallerIdentity = Depends(get_current_caller)) -> CallerIdentity:
    """FastAPI dependency: like get_current_caller, but only admins pass."""
    require_admin(caller)
    return caller


def require_admin(caller: CallerIdentity) -> None:
    if not caller.is_admin:
        raise AuthorizationError("Admin access required")
