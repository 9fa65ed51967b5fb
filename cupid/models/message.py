"""Message and conversation models for the Cupid match engine."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    """Message model."""

    id: int
    sender_id: str
    receiver_id: str
    content: str
    is_read: bool = False
    created_at: datetime
    read_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ConversationSummary(BaseModel):
    """Latest state of the thread between a user and one partner."""

    partner_id: str
    last_message: Message
    unread_count: int = 0
