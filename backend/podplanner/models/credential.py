"""Single-use, time-limited credentials: reset tokens, invitations, invite codes."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, and_, false
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from podplanner.database import Base


class SingleUseCredential:
    """Expiry and used-state shared by every credential table.

    Valid iff ``used`` is false and ``expires_at`` is in the future; once
    used, a credential never becomes valid again.
    """

    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @classmethod
    def valid_clause(cls, now: Optional[datetime] = None):
        now = now or datetime.now(timezone.utc)
        return and_(cls.used == false(), cls.expires_at > now)


class PasswordResetToken(SingleUseCredential, Base):
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token = Column(String(128), nullable=False, unique=True)

    user = relationship("User")


class GroupInvitation(SingleUseCredential, Base):
    """Email-bound invitation: acceptance must come from the invited address."""

    __tablename__ = "group_invitations"

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    token = Column(String(128), nullable=False, unique=True)
    invited_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    group = relationship("Group", lazy="joined")


class GroupInviteCode(SingleUseCredential, Base):
    """Short code any authenticated user may redeem once."""

    __tablename__ = "group_invite_codes"

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    code = Column(String(32), nullable=False, unique=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    group = relationship("Group", lazy="joined")
