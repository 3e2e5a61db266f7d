"""Invitation API routes: resolve and accept email invitations, redeem codes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from podplanner.database import get_db
from podplanner.dependencies import current_user, login_session, optional_user
from podplanner.models.user import User
from podplanner.schemas.group import GroupOut
from podplanner.schemas.invitation import AcceptInvitation, InvitationDetails, JoinedGroupOut, RedeemInviteCode
from podplanner.services import invitation_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/invitations/{token}", response_model=InvitationDetails)
def resolve_invitation(token: str, user: Optional[User] = Depends(optional_user), db: Session = Depends(get_db)):
    """Tell the client whether the invitee must register or sign in first."""
    return invitation_service.resolve_invitation(db, token, principal=user)


@router.post("/accept-invitation", response_model=JoinedGroupOut)
def accept_invitation(
    payload: AcceptInvitation,
    request: Request,
    user: Optional[User] = Depends(optional_user),
    db: Session = Depends(get_db),
):
    """Join the invited group; registers and signs in a new invitee when credentials are sent."""
    acceptance = invitation_service.accept_invitation(
        db,
        payload.token,
        principal=user,
        username=payload.username,
        password=payload.password,
    )
    if acceptance.registered:
        login_session(request, acceptance.user)
    return JoinedGroupOut(group=GroupOut.model_validate(acceptance.group), registered=acceptance.registered)


@router.post("/join-group", response_model=GroupOut)
def redeem_invite_code(payload: RedeemInviteCode, user: User = Depends(current_user), db: Session = Depends(get_db)):
    """Join a group with a single-use invite code."""
    return invitation_service.redeem_invite_code(db, payload.code, user.id)
