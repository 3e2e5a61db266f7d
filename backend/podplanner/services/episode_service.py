"""Episode service: scheduling, status changes and logical deletion.

- Status defaults to ``draft``; any status may move to any other.
- Deleting sets status to ``deleted``; the row and its topic links stay.
- Dates are normalized to aware UTC datetimes; naive input is read in the
  configured default timezone.
"""
import logging
from datetime import date as date_type, datetime, time
from typing import Any, Optional, Union

import pytz
from sqlalchemy.orm import Session

from podplanner.config import settings
from podplanner.database import transaction
from podplanner.errors import NotFound, ValidationError
from podplanner.models.episode import Episode, EpisodeStatus

logger = logging.getLogger(__name__)

DateInput = Union[str, date_type, datetime]

UPDATABLE_FIELDS = ("title", "date", "status", "repeat_pattern")


def parse_date(value: DateInput) -> datetime:
    """Coerce an ISO string, date or datetime into an aware UTC datetime."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}")
    if isinstance(value, date_type) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if not isinstance(value, datetime):
        raise ValidationError("Episode date is required")
    if value.tzinfo is None:
        value = pytz.timezone(settings.DEFAULT_TIMEZONE).localize(value)
    return value.astimezone(pytz.utc)


def parse_status(value: Union[str, EpisodeStatus]) -> EpisodeStatus:
    try:
        return EpisodeStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in EpisodeStatus)
        raise ValidationError(f"Invalid status {value!r}; expected one of: {allowed}")


def default_title(when: datetime) -> str:
    """``Mar 10, 2025 (Monday)`` in the configured timezone."""
    local = when.astimezone(pytz.timezone(settings.DEFAULT_TIMEZONE))
    return f"{local:%b} {local.day}, {local:%Y} ({local:%A})"


def stored_date(episode: Episode) -> datetime:
    """The episode date as aware UTC; some backends hand back naive UTC values."""
    if episode.date.tzinfo is None:
        return pytz.utc.localize(episode.date)
    return episode.date.astimezone(pytz.utc)


def get_episode(db: Session, episode_id: int) -> Episode:
    """Fetch by id regardless of status."""
    episode = db.get(Episode, episode_id)
    if not episode:
        raise NotFound("Episode not found")
    return episode


def create_episode(
    db: Session,
    group_id: int,
    date: DateInput,
    title: Optional[str] = None,
    status: Optional[Union[str, EpisodeStatus]] = None,
    repeat_pattern: Optional[Any] = None,
) -> Episode:
    when = parse_date(date)
    title = (title or "").strip() or default_title(when)
    with transaction(db):
        episode = Episode(
            group_id=group_id,
            title=title,
            date=when,
            status=parse_status(status) if status else EpisodeStatus.draft,
            repeat_pattern=repeat_pattern,
        )
        db.add(episode)
    db.refresh(episode)
    logger.info("Created episode '%s' (%s) in group %s", episode.title, episode.id, group_id)
    return episode


def update_episode(db: Session, episode_id: int, updates: dict[str, Any]) -> Episode:
    """Patch any subset of title, date, status and repeat_pattern."""
    with transaction(db):
        episode = get_episode(db, episode_id)
        for field, value in updates.items():
            if field not in UPDATABLE_FIELDS:
                continue
            if field == "date":
                value = parse_date(value)
            elif field == "status":
                value = parse_status(value)
            elif field == "title":
                value = (value or "").strip()
                if not value:
                    raise ValidationError("Episode title cannot be empty")
            setattr(episode, field, value)
    db.refresh(episode)
    logger.info("Updated episode %s (%s)", episode_id, ", ".join(sorted(updates)) or "no fields")
    return episode


def delete_episode(db: Session, episode_id: int) -> Episode:
    """Logical delete: status becomes ``deleted``, associations are kept."""
    episode = update_episode(db, episode_id, {"status": EpisodeStatus.deleted})
    logger.info("Deleted episode %s", episode_id)
    return episode


def list_group_episodes(db: Session, group_id: int) -> list[Episode]:
    return (
        db.query(Episode)
        .filter(Episode.group_id == group_id, Episode.status != EpisodeStatus.deleted)
        .order_by(Episode.date, Episode.id)
        .all()
    )
