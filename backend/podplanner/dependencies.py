"""Request dependencies: the session-backed principal."""
import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from podplanner.database import get_db
from podplanner.errors import Unauthorized
from podplanner.models.user import User
from podplanner.services import user_service

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


def login_session(request: Request, user: User) -> None:
    """Bind ``user`` to the caller's session cookie."""
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def logout_session(request: Request) -> None:
    request.session.clear()


def optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """The signed-in user, or None. Stale sessions are cleared."""
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None
    user = user_service.get_user(db, user_id)
    if user is None:
        logger.info("Session referenced missing user %s; clearing", user_id)
        request.session.clear()
    return user


def current_user(user: Optional[User] = Depends(optional_user)) -> User:
    if user is None:
        raise Unauthorized()
    return user
