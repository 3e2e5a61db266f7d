"""Group management API routes: groups, members, invitations."""
import logging
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from podplanner.database import get_db
from podplanner.dependencies import current_user
from podplanner.models.user import User
from podplanner.schemas.group import GroupCreate, GroupMemberOut, GroupOut, GroupUpdate, MemberRoleUpdate
from podplanner.schemas.invitation import InvitationCreate, InvitationOut, InviteCodeCreate, InviteCodeOut
from podplanner.services import group_service, invitation_service, notifications
from podplanner.services.access import Action, authorize, ensure_member_of, ensure_not_self

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[GroupOut])
def list_groups(user: User = Depends(current_user), db: Session = Depends(get_db)):
    """Groups the current user belongs to."""
    return group_service.get_user_groups(db, user.id)


@router.post("", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(payload: GroupCreate, user: User = Depends(current_user), db: Session = Depends(get_db)):
    """Create a new group. Creator is automatically added as admin."""
    return group_service.create_group(db, payload.name, user.id)


@router.get("/{group_id}", response_model=GroupOut)
def get_group(group_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)):
    authorize(db, user, group_id, Action.view)
    return group_service.get_group(db, group_id)


@router.patch("/{group_id}", response_model=GroupOut)
def update_group(
    group_id: int,
    payload: GroupUpdate,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Rename a group (admins only)."""
    authorize(db, user, group_id, Action.administer)
    return group_service.update_group(db, group_id, payload.model_dump(exclude_unset=True))


@router.get("/{group_id}/members", response_model=list[GroupMemberOut])
def list_members(group_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)):
    authorize(db, user, group_id, Action.view)
    return group_service.get_group_members(db, group_id)


@router.patch("/{group_id}/members/{member_id}", response_model=GroupMemberOut)
def update_member_role(
    group_id: int,
    member_id: int,
    payload: MemberRoleUpdate,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Promote or demote another member (admins only, never yourself)."""
    authorize(db, user, group_id, Action.administer)
    member = group_service.get_member(db, member_id)
    ensure_member_of(member, group_id)
    ensure_not_self(user, member)
    return group_service.update_member_role(db, member_id, payload.is_admin)


@router.post("/{group_id}/invitations", response_model=InvitationOut, status_code=status.HTTP_201_CREATED)
def create_invitation(
    group_id: int,
    payload: InvitationCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Invite someone by email. The link is mailed after the invitation is saved."""
    authorize(db, user, group_id, Action.administer)
    invitation, token = invitation_service.create_invitation(db, group_id, payload.email, invited_by=user.id)
    background_tasks.add_task(
        notifications.send_group_invitation_email,
        invitation.email,
        invitation.group.name,
        user.username,
        token,
    )
    return invitation


@router.post("/{group_id}/invite-codes", response_model=InviteCodeOut, status_code=status.HTTP_201_CREATED)
def create_invite_code(
    group_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[InviteCodeCreate] = None,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Generate a single-use join code, optionally mailing it to someone."""
    authorize(db, user, group_id, Action.administer)
    invite_code = invitation_service.create_invite_code(db, group_id, created_by=user.id)
    if payload is not None and payload.email:
        background_tasks.add_task(
            notifications.send_invite_code_email,
            str(payload.email),
            invite_code.group.name,
            user.username,
            invite_code.code,
        )
    return invite_code
