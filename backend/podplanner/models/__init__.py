"""ORM models. Importing this package registers every table with Base.metadata."""
from podplanner.models.user import User  # noqa: F401
from podplanner.models.group import Group, GroupMember  # noqa: F401
from podplanner.models.episode import Episode, EpisodeStatus, EpisodeTopic  # noqa: F401
from podplanner.models.topic import Topic, TopicComment  # noqa: F401
from podplanner.models.credential import (  # noqa: F401
    PasswordResetToken,
    GroupInvitation,
    GroupInviteCode,
)
