# tripparty/routes/auth.py
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tripparty.core.errors import Conflict, Unauthorized
from tripparty.core.security import create_access_token, hash_password, verify_password
from tripparty.models.user import User
from tripparty.schemas.auth import AuthResponse, RegisterRequest, SigninRequest
from tripparty.schemas.user import UserSummary, user_summary
from tripparty.services.deps import get_current_user, get_db

logger = logging.getLogger("tripparty.auth")
logger.setLevel(logging.INFO)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    if db.query(User.id).filter(User.username == payload.username).first():
        raise Conflict("Username already exists")

    user = User(username=payload.username, hashed_password=hash_password(payload.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id} ({user.username})")

    return AuthResponse(
        message="Registration successful",
        token=create_access_token(user.id),
        user=user_summary(user),
    )


@router.post("/signin", response_model=AuthResponse)
def signin(payload: SigninRequest, db: Session = Depends(get_db)):
    """
    Standard username/password login.
    Returns JWT on success.
    """
    user = db.query(User).filter(User.username == payload.username).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.info(f"Failed sign-in for username {payload.username!r}")
        raise Unauthorized("Invalid username or password")

    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id),
        user=user_summary(user),
    )


@router.get("/me", response_model=UserSummary)
def me(user: User = Depends(get_current_user)):
    return user_summary(user)
