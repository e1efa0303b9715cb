from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from app.database import get_db
from app.models import User
from app.schemas.user import UserCreate, UserLogin, UserResponse, AuthResponse
from app.schemas.listing import MessageResponse
from app.core.auth import CallerIdentity, get_admin_caller, get_current_user
from app.core.security import create_access_token
from app.services import user_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(data={"sub": str(user.id)})
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Create a new user account.

    Accepts name, email and password, hashes the password, and returns the
    user together with a JWT token.
    """
    user = user_service.signup(
        db,
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
    )
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(user_data: UserLogin, db: Session = Depends(get_db)):
    """
    Authenticate user and return JWT token.
    """
    user = user_service.authenticate(db, user_data.email, user_data.password)
    return _auth_response(user)


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.get("/users", response_model=List[UserResponse])
def list_users(
    caller: CallerIdentity = Depends(get_admin_caller),
    db: Session = Depends(get_db),
):
    """Admin: list all non-admin users."""
    return [UserResponse.model_validate(u) for u in user_service.list_users(db, caller)]


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    caller: CallerIdentity = Depends(get_admin_caller),
    db: Session = Depends(get_db),
):
    """Admin: delete a user account."""
    user_service.delete_user(db, user_id, caller)
    return MessageResponse(message="User deleted")
