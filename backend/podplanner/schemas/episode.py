"""Pydantic schemas for episodes and their ordered topics."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

from podplanner.models.episode import EpisodeStatus
from podplanner.schemas.topic import TopicOut


class EpisodeCreate(BaseModel):
    date: datetime
    title: Optional[str] = None  # derived from the date when omitted
    status: EpisodeStatus = EpisodeStatus.draft
    repeat_pattern: Optional[Any] = None


class EpisodeUpdate(BaseModel):
    title: Optional[str] = None
    date: Optional[datetime] = None
    status: Optional[EpisodeStatus] = None
    repeat_pattern: Optional[Any] = None


class EpisodeOut(BaseModel):
    id: int
    group_id: int
    title: str
    date: datetime
    status: EpisodeStatus
    repeat_pattern: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TopicAttach(BaseModel):
    order: int


class TopicReorder(BaseModel):
    topic_ids: list[int]


class EpisodeTopicOut(TopicOut):
    order: int
