"""Identity store: users, credential hashing and verification."""
import logging
from typing import Optional

from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from podplanner.errors import Conflict, ValidationError
from podplanner.models.user import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.verify(password, password_hash or "")
    except ValueError:
        # malformed stored hash
        return False


def validate_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username.strip()).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def user_exists(db: Session, email: str) -> bool:
    return get_user_by_email(db, email) is not None


def create_user(db: Session, username: str, email: str, password: str) -> User:
    """Insert a new user with a hashed password.

    Flushes but does not commit, so callers can fold registration into a
    larger transaction (invitation acceptance does).
    """
    username = (username or "").strip()
    email = normalize_email(email)
    if not username:
        raise ValidationError("Username is required")
    if not email or "@" not in email:
        raise ValidationError("A valid email address is required")
    validate_password(password)

    if get_user_by_username(db, username):
        raise Conflict("Username already exists", code="USERNAME_EXISTS")
    if get_user_by_email(db, email):
        raise Conflict("An account with this email already exists", code="EMAIL_EXISTS")

    user = User(username=username, email=email, password_hash=hash_password(password))
    db.add(user)
    db.flush()
    logger.info("Created user %s (%s)", user.id, user.username)
    return user


def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    """Return the user when the credentials match, else None."""
    user = get_user_by_username(db, username or "")
    if user is None or not verify_password(password or "", user.password_hash):
        return None
    return user


def set_password(db: Session, user: User, new_password: str) -> None:
    validate_password(new_password)
    user.password_hash = hash_password(new_password)
    db.flush()
