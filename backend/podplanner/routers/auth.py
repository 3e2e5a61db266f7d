"""Authentication API routes: register, login, logout, password reset."""
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from podplanner.database import get_db, transaction
from podplanner.dependencies import current_user, login_session, logout_session
from podplanner.errors import Unauthorized
from podplanner.models.user import User
from podplanner.schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageOut,
    ResetPasswordRequest,
    UserOut,
    UserRegister,
)
from podplanner.services import notifications, password_reset_service, user_service

logger = logging.getLogger(__name__)
router = APIRouter()

RESET_REQUESTED = "If an account exists for that email, a reset link has been sent."


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, request: Request, db: Session = Depends(get_db)):
    """Create an account and sign it in."""
    with transaction(db):
        user = user_service.create_user(db, payload.username, payload.email, payload.password)
    db.refresh(user)
    login_session(request, user)
    return user


@router.post("/login", response_model=UserOut)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = user_service.authenticate(db, payload.username, payload.password)
    if user is None:
        logger.info("Failed login for username %r", payload.username)
        raise Unauthorized("Invalid username or password")
    login_session(request, user)
    logger.info("User %s logged in", user.id)
    return user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(request: Request):
    logout_session(request)


@router.get("/user", response_model=UserOut)
def get_current(user: User = Depends(current_user)):
    return user


@router.post("/forgot-password", response_model=MessageOut)
def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Always answers the same way, whether or not the email is known."""
    issued = password_reset_service.request_reset(db, payload.email)
    if issued is not None:
        email, token = issued
        background_tasks.add_task(notifications.send_password_reset_email, email, token)
    return MessageOut(message=RESET_REQUESTED)


@router.post("/reset-password", response_model=MessageOut)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    password_reset_service.complete_reset(db, payload.token, payload.password)
    return MessageOut(message="Your password has been reset. You can now log in.")
