"""Group and membership data access.

Policy-free: nothing here checks who is asking. Routers call
``access.authorize`` before any mutating operation.
"""
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from podplanner.database import transaction
from podplanner.errors import Conflict, NotFound, ValidationError
from podplanner.models.group import Group, GroupMember
from podplanner.models.user import User

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Group name is required")
    return name


def get_group(db: Session, group_id: int) -> Group:
    group = db.get(Group, group_id)
    if not group:
        raise NotFound("Group not found")
    return group


def create_group(db: Session, name: str, creator_user_id: int) -> Group:
    """Create a group with its creator as the first admin, atomically."""
    name = _clean_name(name)
    with transaction(db):
        group = Group(name=name)
        db.add(group)
        db.flush()
        db.add(GroupMember(group_id=group.id, user_id=creator_user_id, is_admin=True))
    db.refresh(group)
    logger.info("Created group '%s' (%s) by user %s", group.name, group.id, creator_user_id)
    return group


def get_user_groups(db: Session, user_id: int) -> list[Group]:
    """Groups the user belongs to, in the order they joined."""
    return (
        db.query(Group)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .filter(GroupMember.user_id == user_id)
        .order_by(GroupMember.id)
        .all()
    )


def update_group(db: Session, group_id: int, updates: dict[str, Any]) -> Group:
    with transaction(db):
        group = get_group(db, group_id)
        if "name" in updates:
            group.name = _clean_name(updates["name"])
    db.refresh(group)
    logger.info("Updated group %s", group_id)
    return group


def get_membership(db: Session, group_id: int, user_id: int) -> Optional[GroupMember]:
    return (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
        .first()
    )


def is_member(db: Session, group_id: int, user_id: int) -> bool:
    return get_membership(db, group_id, user_id) is not None


def add_group_member(db: Session, user_id: int, group_id: int, is_admin: bool = False) -> GroupMember:
    """Insert a membership row; flushes only, callers own the transaction."""
    if is_member(db, group_id, user_id):
        raise Conflict("User is already a member of this group", code="ALREADY_MEMBER")
    member = GroupMember(group_id=group_id, user_id=user_id, is_admin=is_admin)
    db.add(member)
    db.flush()
    logger.info("Added user %s to group %s (admin=%s)", user_id, group_id, is_admin)
    return member


def get_group_members(db: Session, group_id: int) -> list[GroupMember]:
    """Membership rows joined to their users, in join order."""
    return (
        db.query(GroupMember)
        .join(User, User.id == GroupMember.user_id)
        .filter(GroupMember.group_id == group_id)
        .order_by(GroupMember.id)
        .all()
    )


def get_member(db: Session, member_id: int) -> GroupMember:
    member = db.get(GroupMember, member_id)
    if not member:
        raise NotFound("Membership not found")
    return member


def update_member_role(db: Session, member_id: int, is_admin: bool) -> GroupMember:
    member = get_member(db, member_id)
    with transaction(db):
        member.is_admin = is_admin
    db.refresh(member)
    logger.info("Set admin=%s on membership %s (group %s)", is_admin, member_id, member.group_id)
    return member


def member_emails(db: Session, group_id: int, exclude_user_id: Optional[int] = None) -> list[str]:
    """Addresses of a group's members, for activity notices."""
    query = (
        db.query(User.email)
        .join(GroupMember, GroupMember.user_id == User.id)
        .filter(GroupMember.group_id == group_id)
    )
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return [email for (email,) in query.order_by(GroupMember.id).all()]
