"""Authorization guard shared by every group-scoped entry point."""
import enum
import logging
from typing import Optional

from sqlalchemy.orm import Session

from podplanner.errors import Forbidden, NotFound, Unauthorized
from podplanner.models.group import GroupMember
from podplanner.models.user import User
from podplanner.services import group_service

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    view = "view"
    contribute = "contribute"
    administer = "administer"


def authorize(db: Session, principal: Optional[User], group_id: int, action: Action) -> GroupMember:
    """Check that ``principal`` may perform ``action`` in the group.

    Returns the principal's membership row. Raises NotFound when the group
    does not exist, Unauthorized without a principal, and Forbidden for
    non-members or for non-admins attempting an admin action.
    """
    if principal is None:
        raise Unauthorized()
    group_service.get_group(db, group_id)

    membership = group_service.get_membership(db, group_id, principal.id)
    if membership is None:
        logger.info("User %s denied %s on group %s: not a member", principal.id, action.value, group_id)
        raise Forbidden("You are not a member of this group")
    if action is Action.administer and not membership.is_admin:
        logger.info("User %s denied %s on group %s: not an admin", principal.id, action.value, group_id)
        raise Forbidden("Only group admins can perform this action")
    return membership


def ensure_not_self(principal: User, member: GroupMember) -> None:
    """Admins may not change their own role."""
    if member.user_id == principal.id:
        raise Forbidden("You cannot change your own role")


def ensure_member_of(member: GroupMember, group_id: int) -> None:
    if member.group_id != group_id:
        raise NotFound("Membership not found")
