"""Episode API routes, including the ordered topics attached to an episode."""
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from podplanner.config import settings
from podplanner.database import get_db
from podplanner.dependencies import current_user
from podplanner.models.episode import Episode
from podplanner.models.user import User
from podplanner.schemas.episode import (
    EpisodeCreate,
    EpisodeOut,
    EpisodeTopicOut,
    EpisodeUpdate,
    TopicAttach,
    TopicReorder,
)
from podplanner.schemas.topic import TopicOut
from podplanner.services import episode_service, episode_topic_service, group_service, notifications, topic_service
from podplanner.services.access import Action, authorize

logger = logging.getLogger(__name__)
router = APIRouter()


def _notify_members(
    background_tasks: BackgroundTasks,
    db: Session,
    group_id: int,
    actor: User,
    activity: notifications.ActivityType,
    details: str,
) -> None:
    """Queue an activity notice to every other member of the group."""
    if not settings.NOTIFY_GROUP_ACTIVITY:
        return
    recipients = group_service.member_emails(db, group_id, exclude_user_id=actor.id)
    if not recipients:
        return
    group = group_service.get_group(db, group_id)
    background_tasks.add_task(notifications.send_group_activity_email, recipients, group.name, activity, details)


def _describe(episode: Episode) -> str:
    return f'"{episode.title}" on {episode_service.default_title(episode_service.stored_date(episode))}'


def _episode_topics(db: Session, episode_id: int) -> list[EpisodeTopicOut]:
    return [
        EpisodeTopicOut(**TopicOut.model_validate(topic).model_dump(), order=order)
        for topic, order in episode_topic_service.list_for_episode(db, episode_id)
    ]


def _load_episode(db: Session, user: User, episode_id: int, action: Action) -> Episode:
    episode = episode_service.get_episode(db, episode_id)
    authorize(db, user, episode.group_id, action)
    return episode


@router.post("/groups/{group_id}/episodes", response_model=EpisodeOut, status_code=status.HTTP_201_CREATED)
def create_episode(
    group_id: int,
    payload: EpisodeCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Schedule an episode; status defaults to draft."""
    authorize(db, user, group_id, Action.contribute)
    episode = episode_service.create_episode(
        db,
        group_id=group_id,
        date=payload.date,
        title=payload.title,
        status=payload.status,
        repeat_pattern=payload.repeat_pattern,
    )
    _notify_members(background_tasks, db, group_id, user, "new_episode",
                    f"{user.username} planned a new episode: {_describe(episode)}.")
    return episode


@router.get("/groups/{group_id}/episodes", response_model=list[EpisodeOut])
def list_episodes(group_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)):
    """Episodes of a group, excluding deleted ones."""
    authorize(db, user, group_id, Action.view)
    return episode_service.list_group_episodes(db, group_id)


@router.get("/episodes/{episode_id}", response_model=EpisodeOut)
def get_episode(episode_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)):
    return _load_episode(db, user, episode_id, Action.view)


@router.patch("/episodes/{episode_id}", response_model=EpisodeOut)
def update_episode(
    episode_id: int,
    payload: EpisodeUpdate,
    background_tasks: BackgroundTasks,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Partial update; any status may move to any other."""
    episode = _load_episode(db, user, episode_id, Action.contribute)
    previous_date = episode_service.stored_date(episode)
    episode = episode_service.update_episode(db, episode_id, payload.model_dump(exclude_unset=True))
    if episode_service.stored_date(episode) != previous_date:
        _notify_members(background_tasks, db, episode.group_id, user, "schedule_change",
                        f"{user.username} moved {_describe(episode)}.")
    return episode


@router.delete("/episodes/{episode_id}", response_model=EpisodeOut)
def delete_episode(episode_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)):
    """Logical delete: the episode is hidden from listings, its topic links remain."""
    _load_episode(db, user, episode_id, Action.contribute)
    return episode_service.delete_episode(db, episode_id)


@router.get("/episodes/{episode_id}/topics", response_model=list[EpisodeTopicOut])
def list_episode_topics(episode_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)):
    _load_episode(db, user, episode_id, Action.view)
    return _episode_topics(db, episode_id)


@router.put("/episodes/{episode_id}/topics/order", response_model=list[EpisodeTopicOut])
def reorder_episode_topics(
    episode_id: int,
    payload: TopicReorder,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Rewrite the whole order in one transaction."""
    _load_episode(db, user, episode_id, Action.contribute)
    episode_topic_service.reorder(db, episode_id, payload.topic_ids)
    return _episode_topics(db, episode_id)


@router.post("/episodes/{episode_id}/topics/{topic_id}", response_model=list[EpisodeTopicOut])
def attach_topic(
    episode_id: int,
    topic_id: int,
    payload: TopicAttach,
    background_tasks: BackgroundTasks,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Attach a topic at ``order``, or move it there if already attached."""
    episode = _load_episode(db, user, episode_id, Action.contribute)
    created = episode_topic_service.attach(db, episode_id, topic_id, payload.order)
    if created:
        topic = topic_service.get_topic(db, topic_id)
        _notify_members(background_tasks, db, episode.group_id, user, "topic_assigned",
                        f'{user.username} added "{topic.name}" to {_describe(episode)}.')
    return _episode_topics(db, episode_id)


@router.delete("/episodes/{episode_id}/topics/{topic_id}", response_model=list[EpisodeTopicOut])
def detach_topic(
    episode_id: int,
    topic_id: int,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    _load_episode(db, user, episode_id, Action.contribute)
    episode_topic_service.detach(db, episode_id, topic_id)
    return _episode_topics(db, episode_id)
