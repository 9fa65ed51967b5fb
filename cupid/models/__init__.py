"""Models package for the Cupid match engine."""

from cupid.models.interaction import Interaction, InteractionResult, InteractionState, MatchView, is_mutual_like
from cupid.models.message import ConversationSummary, Message
from cupid.models.moderation import Block, Report
from cupid.models.notification import NotificationEvent, NotificationType
from cupid.models.user import User

__all__ = [
    "Block",
    "ConversationSummary",
    "Interaction",
    "InteractionResult",
    "InteractionState",
    "MatchView",
    "Message",
    "NotificationEvent",
    "NotificationType",
    "Report",
    "User",
    "is_mutual_like",
]
