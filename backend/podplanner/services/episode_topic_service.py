"""Ordered many-to-many links between episodes and topics.

At most one link per (episode, topic). ``attach`` upserts on that pair and
only the order changes on conflict. ``reorder`` rewrites a whole episode's
order as 0..N-1 in one transaction, holding the episode row lock so two
concurrent reorders serialize instead of interleaving.
"""
import logging

from sqlalchemy.orm import Session

from podplanner.database import transaction, upsert_insert
from podplanner.errors import Conflict, NotFound, ValidationError
from podplanner.models.episode import Episode, EpisodeTopic
from podplanner.models.topic import Topic
from podplanner.services.episode_service import get_episode
from podplanner.services.topic_service import get_topic

logger = logging.getLogger(__name__)


def _check_order(order: int) -> int:
    if isinstance(order, bool) or not isinstance(order, int) or order < 0:
        raise ValidationError("order must be a non-negative integer")
    return order


def attach(db: Session, episode_id: int, topic_id: int, order: int) -> bool:
    """Link a topic to an episode, or move it if already linked.

    Returns True when a new link was created.
    """
    order = _check_order(order)
    with transaction(db):
        episode = get_episode(db, episode_id)
        topic = get_topic(db, topic_id)
        if episode.group_id != topic.group_id:
            raise ValidationError("Topic and episode belong to different groups")

        exists = (
            db.query(EpisodeTopic.id)
            .filter(EpisodeTopic.episode_id == episode_id, EpisodeTopic.topic_id == topic_id)
            .first()
            is not None
        )
        stmt = upsert_insert(db, EpisodeTopic).values(episode_id=episode_id, topic_id=topic_id, order=order)
        stmt = stmt.on_conflict_do_update(
            index_elements=[EpisodeTopic.episode_id, EpisodeTopic.topic_id],
            set_={"order": stmt.excluded["order"]},
        )
        db.execute(stmt)
    logger.info("Attached topic %s to episode %s at order %d", topic_id, episode_id, order)
    return not exists


def detach(db: Session, episode_id: int, topic_id: int) -> None:
    """Remove only the link row; the episode and topic are untouched."""
    with transaction(db):
        removed = (
            db.query(EpisodeTopic)
            .filter(EpisodeTopic.episode_id == episode_id, EpisodeTopic.topic_id == topic_id)
            .delete(synchronize_session=False)
        )
    logger.info("Detached topic %s from episode %s (%d row)", topic_id, episode_id, removed)


def list_for_episode(db: Session, episode_id: int) -> list[tuple[Topic, int]]:
    """Linked topics with their order, ascending. Works for deleted episodes too."""
    return (
        db.query(Topic, EpisodeTopic.order)
        .join(EpisodeTopic, EpisodeTopic.topic_id == Topic.id)
        .filter(EpisodeTopic.episode_id == episode_id)
        .order_by(EpisodeTopic.order, EpisodeTopic.id)
        .all()
    )


def reorder(db: Session, episode_id: int, topic_ids: list[int]) -> None:
    """Set the episode's topics to exactly ``topic_ids`` order, all or nothing.

    ``topic_ids`` must be a permutation of the currently linked topics;
    otherwise the caller's view is stale and nothing is written.
    """
    if len(set(topic_ids)) != len(topic_ids):
        raise ValidationError("Topic ids must not repeat")

    with transaction(db):
        episode = db.query(Episode).filter(Episode.id == episode_id).with_for_update().first()
        if not episode:
            raise NotFound("Episode not found")

        links = db.query(EpisodeTopic).filter(EpisodeTopic.episode_id == episode_id).all()
        by_topic = {link.topic_id: link for link in links}
        if set(by_topic) != set(topic_ids):
            raise Conflict("Topic list is out of date; reload the episode and retry", code="STALE_ORDER")

        for position, topic_id in enumerate(topic_ids):
            by_topic[topic_id].order = position
    logger.info("Reordered %d topics on episode %s", len(topic_ids), episode_id)
