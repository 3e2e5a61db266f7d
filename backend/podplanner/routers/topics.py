"""Topic vault API routes and per-user topic notes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from podplanner.database import get_db
from podplanner.dependencies import current_user
from podplanner.models.topic import Topic
from podplanner.models.user import User
from podplanner.schemas.topic import NoteOut, NoteUpsert, TopicCreate, TopicOut, TopicUpdate
from podplanner.services import note_service, topic_service
from podplanner.services.access import Action, authorize

logger = logging.getLogger(__name__)
router = APIRouter()


def _load_topic(db: Session, user: User, topic_id: int, action: Action) -> Topic:
    topic = topic_service.get_topic(db, topic_id)
    authorize(db, user, topic.group_id, action)
    return topic


@router.get("/groups/{group_id}/topics", response_model=list[TopicOut])
def list_topics(group_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)):
    """Every topic of the group; clients filter on the archive and delete flags."""
    authorize(db, user, group_id, Action.view)
    return topic_service.list_group_topics(db, group_id)


@router.post("/groups/{group_id}/topics", response_model=TopicOut, status_code=status.HTTP_201_CREATED)
def create_topic(
    group_id: int,
    payload: TopicCreate,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    authorize(db, user, group_id, Action.contribute)
    return topic_service.create_topic(db, group_id, name=payload.name, url=payload.url)


@router.patch("/topics/{topic_id}", response_model=TopicOut)
def update_topic(
    topic_id: int,
    payload: TopicUpdate,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Edit name/url or toggle the archived and deleted flags."""
    _load_topic(db, user, topic_id, Action.contribute)
    return topic_service.update_topic(db, topic_id, payload.model_dump(exclude_unset=True))


@router.get("/topics/{topic_id}/comments", response_model=list[NoteOut])
def list_notes(topic_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)):
    _load_topic(db, user, topic_id, Action.view)
    return note_service.list_notes_with_authors(db, topic_id)


@router.post("/topics/{topic_id}/comments", response_model=NoteOut)
def save_note(
    topic_id: int,
    payload: NoteUpsert,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    """Create or overwrite the caller's note on this topic."""
    _load_topic(db, user, topic_id, Action.contribute)
    return note_service.upsert_note(db, topic_id, user.id, payload.content)
