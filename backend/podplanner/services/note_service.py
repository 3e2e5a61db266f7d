"""Topic notes: one persistent note per (user, topic), overwritten on repost."""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from podplanner.database import transaction, upsert_insert
from podplanner.errors import ValidationError
from podplanner.models.topic import TopicComment

logger = logging.getLogger(__name__)


def upsert_note(db: Session, topic_id: int, user_id: int, content: str) -> TopicComment:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Note content cannot be empty")

    now = datetime.now(timezone.utc)
    with transaction(db):
        stmt = upsert_insert(db, TopicComment).values(
            topic_id=topic_id, user_id=user_id, content=content, updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TopicComment.user_id, TopicComment.topic_id],
            set_={"content": content, "updated_at": now},
        )
        db.execute(stmt)

    note = (
        db.query(TopicComment)
        .filter(TopicComment.user_id == user_id, TopicComment.topic_id == topic_id)
        .one()
    )
    db.refresh(note)
    logger.info("Saved note %s by user %s on topic %s", note.id, user_id, topic_id)
    return note


def list_notes_with_authors(db: Session, topic_id: int) -> list[TopicComment]:
    return (
        db.query(TopicComment)
        .filter(TopicComment.topic_id == topic_id)
        .order_by(TopicComment.updated_at, TopicComment.id)
        .all()
    )
