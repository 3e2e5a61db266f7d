"""Episode and EpisodeTopic ORM models."""
import enum
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from podplanner.database import Base


class EpisodeStatus(str, enum.Enum):
    draft = "draft"
    planned = "planned"
    done = "done"
    deleted = "deleted"


class Episode(Base):
    __tablename__ = "episodes"

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    status = Column(SAEnum(EpisodeStatus, name="episode_status"), nullable=False, default=EpisodeStatus.draft)
    repeat_pattern = Column(JSON, nullable=True)  # opaque, stored as given
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    topic_links = relationship("EpisodeTopic", back_populates="episode", order_by="EpisodeTopic.order")


class EpisodeTopic(Base):
    __tablename__ = "episode_topics"
    __table_args__ = (UniqueConstraint("episode_id", "topic_id", name="uq_episode_topics_episode_topic"),)

    id = Column(Integer, primary_key=True)
    episode_id = Column(Integer, ForeignKey("episodes.id"), nullable=False, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id"), nullable=False, index=True)
    order = Column(Integer, nullable=False)

    episode = relationship("Episode", back_populates="topic_links")
    topic = relationship("Topic")
