"""Messaging gate and match-gated messaging for the Cupid match engine."""

from typing import Dict, List, Optional

import sentry_sdk
from sqlalchemy.orm import Session

from cupid.config import get_settings
from cupid.models.message import ConversationSummary, Message
from cupid.services.message_store import MessageStore
from cupid.services.relationship_store import RelationshipStore
from cupid.services.user_directory import UserDirectory
from cupid.utils.database import Database, utcnow
from cupid.utils.errors import ForbiddenError, ValidationError
from cupid.utils.logging import get_logger

logger = get_logger(__name__)


class MessagingGate:
    """Authorizes messaging between two users based on match state alone."""

    def __init__(self, db: Database, store: Optional[RelationshipStore] = None) -> None:
        self.db = db
        self.store = store or RelationshipStore()

    def can_message(self, user_a: str, user_b: str, session: Optional[Session] = None) -> bool:
        """
        Return True iff a MATCHED interaction exists between the users in either direction.

        Pass `session` to evaluate inside an existing atomic unit.
        """
        if session is not None:
            return self.store.is_matched(session, user_a, user_b)
        return self.db.run_atomic(lambda s: self.store.is_matched(s, user_a, user_b), name="gate.check")

    def ensure_can_message(self, session: Session, user_id: str, other_id: str, message: str) -> None:
        """Raise ForbiddenError unless the users are currently matched."""
        if not self.can_message(user_id, other_id, session=session):
            logger.warning("Messaging denied, users not matched", user_id=user_id, other=other_id)
            raise ForbiddenError(message, details={"user_id": user_id, "other_id": other_id})


class MessagingService:
    """Send and read messages between matched users."""

    def __init__(
        self,
        db: Database,
        users: UserDirectory,
        gate: MessagingGate,
        messages: Optional[MessageStore] = None,
    ) -> None:
        self.db = db
        self.users = users
        self.gate = gate
        self.messages = messages or MessageStore()

    def send_message(self, sender_id: str, receiver_id: str, content: str) -> Message:
        """
        Send a message to a matched user.

        Args:
            sender_id (str): Authenticated sender.
            receiver_id (str): Recipient.
            content (str): Message text.

        Returns:
            Message: The stored message with its timestamp.

        Raises:
            ValidationError: If the content is empty or too long.
            NotFoundError: If either party does not exist.
            ForbiddenError: If the users are not matched.
        """
        max_length = get_settings().MAX_MESSAGE_LENGTH
        if not content or not content.strip():
            raise ValidationError("Message content cannot be empty")
        if len(content) > max_length:
            raise ValidationError(
                f"Message content exceeds {max_length} characters",
                details={"max_length": max_length, "length": len(content)},
            )

        def _send(session: Session) -> Message:
            self.users.require(session, receiver_id, actor_id=sender_id, lock=True)
            self.gate.ensure_can_message(
                session, sender_id, receiver_id, "You can only send messages to users you have matched with"
            )
            row = self.messages.insert_message(session, sender_id, receiver_id, content, utcnow())
            return Message.model_validate(row)

        with sentry_sdk.start_span(op="message.send", name=f"{sender_id} -> {receiver_id}"):
            message = self.db.run_atomic(_send, name="message.send")

        logger.info("Message sent", message_id=message.id, sender=sender_id, receiver=receiver_id)
        return message

    def get_conversation(
        self,
        user_id: str,
        other_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Message]:
        """
        Read the conversation with a matched user, newest message first.

        Messages the other user sent are marked as read in the same atomic unit.

        Raises:
            ForbiddenError: If the users are not matched.
        """
        settings = get_settings()
        page_size = max(1, min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE))
        offset = max(0, offset)

        def _read(session: Session) -> tuple[List[Message], int]:
            self.gate.ensure_can_message(
                session, user_id, other_id, "You can only view messages with users you have matched with"
            )
            marked = self.messages.mark_read(session, user_id, other_id, utcnow())
            rows = self.messages.conversation(session, user_id, other_id, page_size, offset)
            return [Message.model_validate(row) for row in rows], marked

        with sentry_sdk.start_span(op="message.conversation", name=f"{user_id} <-> {other_id}") as span:
            messages, marked = self.db.run_atomic(_read, name="message.conversation")
            span.set_data("count", len(messages))

        logger.debug(
            "Conversation retrieved",
            user_id=user_id,
            other=other_id,
            count=len(messages),
            marked_read=marked,
        )
        return messages

    def list_conversations(self, user_id: str) -> List[ConversationSummary]:
        """
        Summarize every thread the user has taken part in, most recent first.

        This is message history, so it is not gated on the current match state.
        """

        def _load(session: Session) -> List[ConversationSummary]:
            unread = self.messages.unread_counts(session, user_id)
            latest: Dict[str, Message] = {}
            for row in self.messages.messages_involving(session, user_id):
                partner_id = row.receiver_id if row.sender_id == user_id else row.sender_id
                if partner_id not in latest:
                    latest[partner_id] = Message.model_validate(row)
            return [
                ConversationSummary(partner_id=partner_id, last_message=message, unread_count=unread.get(partner_id, 0))
                for partner_id, message in latest.items()
            ]

        conversations = self.db.run_atomic(_load, name="message.conversations")
        logger.debug("Conversations retrieved", user_id=user_id, count=len(conversations))
        return conversations
