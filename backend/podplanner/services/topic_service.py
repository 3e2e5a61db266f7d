"""Topic vault: per-group topics with independent archive and delete flags."""
import logging
from typing import Any, Optional
from urllib.parse import urlparse

from sqlalchemy.orm import Session

from podplanner.database import transaction
from podplanner.errors import NotFound, ValidationError
from podplanner.models.topic import Topic

logger = logging.getLogger(__name__)

FLAG_FIELDS = ("is_archived", "is_deleted")


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Invalid URL: {url!r}")
    return url


def _name_and_url(name: Optional[str], url: Optional[str]) -> tuple[str, Optional[str]]:
    """Require at least one of name/url; a missing name falls back to the url."""
    name, url = _blank_to_none(name), _blank_to_none(url)
    if url is not None:
        _validate_url(url)
    if name is None and url is None:
        raise ValidationError("A topic needs a name or a URL")
    return name or url, url


def get_topic(db: Session, topic_id: int) -> Topic:
    topic = db.get(Topic, topic_id)
    if not topic:
        raise NotFound("Topic not found")
    return topic


def create_topic(db: Session, group_id: int, name: Optional[str] = None, url: Optional[str] = None) -> Topic:
    name, url = _name_and_url(name, url)
    with transaction(db):
        topic = Topic(group_id=group_id, name=name, url=url, is_archived=False, is_deleted=False)
        db.add(topic)
    db.refresh(topic)
    logger.info("Created topic %s in group %s", topic.id, group_id)
    return topic


def update_topic(db: Session, topic_id: int, updates: dict[str, Any]) -> Topic:
    with transaction(db):
        topic = get_topic(db, topic_id)
        if "name" in updates or "url" in updates:
            topic.name, topic.url = _name_and_url(
                updates.get("name", topic.name),
                updates.get("url", topic.url),
            )
        for flag in FLAG_FIELDS:
            if updates.get(flag) is not None:
                setattr(topic, flag, bool(updates[flag]))
    db.refresh(topic)
    logger.info("Updated topic %s", topic_id)
    return topic


def list_group_topics(db: Session, group_id: int) -> list[Topic]:
    """All topics of a group, archived and deleted included."""
    return db.query(Topic).filter(Topic.group_id == group_id).order_by(Topic.id).all()
