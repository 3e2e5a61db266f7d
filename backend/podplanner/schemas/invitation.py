"""Pydantic schemas for email invitations and invite codes."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr

from podplanner.schemas.group import GroupOut


class InvitationCreate(BaseModel):
    email: EmailStr


class InvitationOut(BaseModel):
    id: int
    group_id: int
    email: str
    invited_by: int
    expires_at: datetime

    model_config = {"from_attributes": True}


class InvitationDetails(BaseModel):
    email: str
    group_id: int
    group_name: str
    requires_registration: bool
    requires_login: bool

    model_config = {"from_attributes": True}


class AcceptInvitation(BaseModel):
    token: str
    username: Optional[str] = None
    password: Optional[str] = None


class InviteCodeCreate(BaseModel):
    email: Optional[EmailStr] = None  # also mail the code to this address


class InviteCodeOut(BaseModel):
    code: str
    group_id: int
    expires_at: datetime

    model_config = {"from_attributes": True}


class RedeemInviteCode(BaseModel):
    code: str


class JoinedGroupOut(BaseModel):
    group: GroupOut
    registered: bool = False
