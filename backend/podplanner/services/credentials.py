"""Issue, look up and consume single-use credentials.

One implementation of the validity predicate and the used-flag flip,
shared by password reset tokens, email invitations and invite codes.
"""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, TypeVar

from sqlalchemy import false
from sqlalchemy.orm import Session

from podplanner.errors import InvalidOrExpired
from podplanner.models.credential import SingleUseCredential

C = TypeVar("C", bound=SingleUseCredential)

TOKEN_BYTES = 32  # 64 hex chars
CODE_BYTES = 4  # 8 hex chars


def new_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def new_code() -> str:
    return secrets.token_hex(CODE_BYTES)


def expiry(delta: timedelta) -> datetime:
    return datetime.now(timezone.utc) + delta


def find_valid(db: Session, model: type[C], column, value: str, lock: bool = False) -> Optional[C]:
    """Return the unused, unexpired row whose ``column`` equals ``value``.

    With ``lock`` the row is selected FOR UPDATE so concurrent consumers
    serialize on it (dialects without row locks ignore this).
    """
    query = db.query(model).filter(column == value, model.valid_clause())
    if lock:
        query = query.with_for_update(of=model)
    return query.first()


def consume(db: Session, model: type[C], row_id: int) -> None:
    """Flip ``used`` exactly once; a second consumer gets InvalidOrExpired."""
    flipped = (
        db.query(model)
        .filter(model.id == row_id, model.used == false())
        .update({model.used: True}, synchronize_session=False)
    )
    if flipped != 1:
        raise InvalidOrExpired()
