"""
User accounts: signup, credential checks and admin management.
"""
import logging
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import CallerIdentity, require_admin
from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.core.security import get_password_hash, verify_password
from app.models import User, UserRole

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def signup(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """
    Create a new account.

    The HTTP layer always passes role=USER; admins are only created by the
    seed script.
    """
    name = (name or "").strip()
    normalized_email = normalize_email(email)
    if not name or not normalized_email or not password:
        raise ValidationError("All fields are required")
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
    try:
        validate_email(normalized_email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Please enter a valid email address")

    if get_user_by_email(db, normalized_email) is not None:
        raise ConflictError("An account with this email already exists")

    user = User(
        name=name,
        email=normalized_email,
        password_hash=get_password_hash(password),
        role=role,
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email
        db.rollback()
        raise ConflictError("An account with this email already exists")
    db.refresh(user)
    logger.info("Created user %s (role=%s)", user.id, user.role.value)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for email=%s", normalize_email(email))
        raise AuthenticationError("Invalid email or password")
    return user


def list_users(db: Session, caller: CallerIdentity) -> List[User]:
    """Admin only: every non-admin account, newest first."""
    require_admin(caller)
    return (
        db.query(User)
        .filter(User.role == UserRole.USER)
        .order_by(User.created_at.desc())
        .all()
    )


def delete_user(db: Session, user_id: str, caller: CallerIdentity) -> None:
    """
    Admin only. The user's listings stay up with their stored seller name.
    """
    require_admin(caller)
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    db.delete(user)
    db.commit()
    logger.info("Deleted user %s by admin %s", user_id, caller.id)
