"""Notification events raised by the match engine."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    """Notification type enumeration."""

    MATCH = "match"
    LIKE = "like"


class NotificationEvent(BaseModel):
    """Fire-and-forget event for the notification collaborator."""

    type: NotificationType
    recipient_id: str
    from_user_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)
