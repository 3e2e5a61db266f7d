"""Pydantic schemas for the topic vault and topic notes."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from podplanner.schemas.user import UserOut


class TopicCreate(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None


class TopicUpdate(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    is_archived: Optional[bool] = None
    is_deleted: Optional[bool] = None


class TopicOut(BaseModel):
    id: int
    group_id: int
    name: Optional[str] = None
    url: Optional[str] = None
    is_archived: bool
    is_deleted: bool

    model_config = {"from_attributes": True}


class NoteUpsert(BaseModel):
    content: str


class NoteOut(BaseModel):
    id: int
    topic_id: int
    user_id: int
    content: str
    updated_at: datetime
    user: UserOut

    model_config = {"from_attributes": True}
