"""Group invitations: email-bound tokens and short invite codes.

Email invitation lifecycle: pending (unused, unexpired) -> used, or
expired by the clock. Acceptance has three branches depending on whether
someone is signed in and whether the invited email already has an account;
in every branch the signed-in (or freshly registered) user's email must
match the invited one before membership is granted.

Invite codes carry no email binding: any signed-in non-member may redeem a
valid code once.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from podplanner.config import settings
from podplanner.database import transaction
from podplanner.errors import (
    Conflict,
    EmailMismatch,
    InvalidOrExpired,
    LoginRequired,
    RegistrationRequired,
    ValidationError,
)
from podplanner.models.credential import GroupInvitation, GroupInviteCode
from podplanner.models.group import Group
from podplanner.models.user import User
from podplanner.services import credentials, group_service, user_service

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 5


@dataclass
class InvitationResolution:
    email: str
    group_id: int
    group_name: str
    requires_registration: bool
    requires_login: bool


@dataclass
class Acceptance:
    group: Group
    user: User
    registered: bool


def _signed_in_as(principal: Optional[User], email: str) -> bool:
    return principal is not None and user_service.normalize_email(principal.email) == email


def create_invitation(db: Session, group_id: int, email: str, invited_by: int) -> tuple[GroupInvitation, str]:
    """Persist an invitation for ``email`` and return it with its token.

    The caller hands the token to the notification sender after this returns.
    """
    email = user_service.normalize_email(email)
    if not email or "@" not in email:
        raise ValidationError("A valid email address is required")
    group_service.get_group(db, group_id)

    existing = user_service.get_user_by_email(db, email)
    if existing and group_service.is_member(db, group_id, existing.id):
        raise Conflict("That user is already a member of this group", code="ALREADY_MEMBER")

    token = credentials.new_token()
    with transaction(db):
        invitation = GroupInvitation(
            group_id=group_id,
            email=email,
            token=token,
            invited_by=invited_by,
            expires_at=credentials.expiry(timedelta(days=settings.INVITATION_TTL_DAYS)),
        )
        db.add(invitation)
    db.refresh(invitation)
    logger.info("Created invitation %s to group %s by user %s", invitation.id, group_id, invited_by)
    return invitation, token


def resolve_invitation(db: Session, token: str, principal: Optional[User] = None) -> InvitationResolution:
    invitation = credentials.find_valid(db, GroupInvitation, GroupInvitation.token, token)
    if not invitation:
        raise InvalidOrExpired("Invalid or expired invitation")

    account_exists = user_service.user_exists(db, invitation.email)
    return InvitationResolution(
        email=invitation.email,
        group_id=invitation.group_id,
        group_name=invitation.group.name,
        requires_registration=not account_exists,
        requires_login=account_exists and not _signed_in_as(principal, invitation.email),
    )


def accept_invitation(
    db: Session,
    token: str,
    principal: Optional[User] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> Acceptance:
    """Join the invited group, registering the invitee first if needed.

    Registration, membership and the used flag commit together or not at all.
    """
    registered = False
    with transaction(db):
        invitation = credentials.find_valid(db, GroupInvitation, GroupInvitation.token, token, lock=True)
        if not invitation:
            raise InvalidOrExpired("Invalid or expired invitation")

        if principal is None:
            if user_service.user_exists(db, invitation.email):
                raise LoginRequired(invitation.email)
            if not (username and password):
                raise RegistrationRequired(invitation.email)
            principal = user_service.create_user(db, username, invitation.email, password)
            registered = True

        # Re-checked after registration too: the invitation is bound to the address.
        if not _signed_in_as(principal, invitation.email):
            raise EmailMismatch()

        group_id = invitation.group_id
        group_service.add_group_member(db, user_id=principal.id, group_id=group_id, is_admin=False)
        credentials.consume(db, GroupInvitation, invitation.id)

    logger.info("User %s accepted invitation to group %s (registered=%s)", principal.id, group_id, registered)
    return Acceptance(group=group_service.get_group(db, group_id), user=principal, registered=registered)


def create_invite_code(db: Session, group_id: int, created_by: int) -> GroupInviteCode:
    group_service.get_group(db, group_id)
    for _ in range(MAX_CODE_ATTEMPTS):
        code = credentials.new_code()
        if not db.query(GroupInviteCode.id).filter(GroupInviteCode.code == code).first():
            break
    else:
        raise Conflict("Could not allocate a unique invite code, try again")

    with transaction(db):
        invite_code = GroupInviteCode(
            group_id=group_id,
            code=code,
            created_by=created_by,
            expires_at=credentials.expiry(timedelta(days=settings.INVITE_CODE_TTL_DAYS)),
        )
        db.add(invite_code)
    db.refresh(invite_code)
    logger.info("Created invite code %s for group %s by user %s", invite_code.id, group_id, created_by)
    return invite_code


def redeem_invite_code(db: Session, code: str, user_id: int) -> Group:
    code = (code or "").strip().lower()
    with transaction(db):
        invite_code = credentials.find_valid(db, GroupInviteCode, GroupInviteCode.code, code, lock=True)
        if not invite_code:
            raise InvalidOrExpired("Invalid or expired invite code")

        group_id = invite_code.group_id
        if group_service.is_member(db, group_id, user_id):
            raise Conflict("You are already a member of this group", code="ALREADY_MEMBER")
        group_service.add_group_member(db, user_id=user_id, group_id=group_id, is_admin=False)
        credentials.consume(db, GroupInviteCode, invite_code.id)

    logger.info("User %s redeemed invite code %s for group %s", user_id, invite_code.id, group_id)
    return group_service.get_group(db, group_id)
