"""Pydantic schemas for groups and memberships."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from podplanner.schemas.user import UserOut


class GroupCreate(BaseModel):
    name: str


class GroupUpdate(BaseModel):
    name: Optional[str] = None


class GroupOut(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MemberRoleUpdate(BaseModel):
    is_admin: bool


class GroupMemberOut(BaseModel):
    id: int
    user_id: int
    group_id: int
    is_admin: bool
    joined_at: Optional[datetime] = None
    user: UserOut

    model_config = {"from_attributes": True}
