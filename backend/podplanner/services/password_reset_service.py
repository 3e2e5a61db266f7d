"""Password recovery: one-hour, single-use reset tokens."""
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from podplanner.config import settings
from podplanner.database import transaction
from podplanner.errors import InvalidOrExpired
from podplanner.models.credential import PasswordResetToken
from podplanner.services import credentials, user_service

logger = logging.getLogger(__name__)


def request_reset(db: Session, email: str) -> Optional[tuple[str, str]]:
    """Issue a reset token when ``email`` belongs to an account.

    Returns ``(email, token)`` for the notification sender, or None. Callers
    must answer the same way in both cases so accounts cannot be enumerated.
    """
    user = user_service.get_user_by_email(db, email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return None

    token = credentials.new_token()
    with transaction(db):
        db.add(PasswordResetToken(
            user_id=user.id,
            token=token,
            expires_at=credentials.expiry(timedelta(hours=settings.PASSWORD_RESET_TTL_HOURS)),
        ))
    logger.info("Password reset token issued for user %s", user.id)
    return user.email, token


def complete_reset(db: Session, token: str, new_password: str) -> None:
    """Set the new password and burn the token in one transaction.

    The token is checked before the password, so a bad token always answers
    InvalidOrExpired; a weak password rolls back and leaves the token usable.
    """
    with transaction(db):
        reset = credentials.find_valid(db, PasswordResetToken, PasswordResetToken.token, token, lock=True)
        if not reset:
            raise InvalidOrExpired("Invalid or expired reset token")
        user_service.set_password(db, reset.user, new_password)
        credentials.consume(db, PasswordResetToken, reset.id)
        user_id = reset.user_id
    logger.info("Password reset completed for user %s", user_id)
