"""Persistence for direct messages. Runs on the caller's session like the relationship store."""

from datetime import datetime
from typing import Dict, List

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from cupid.utils.database import MessageDB


class MessageStore:
    """Row-level access to the message log."""

    def insert_message(
        self,
        session: Session,
        sender_id: str,
        receiver_id: str,
        content: str,
        now: datetime,
    ) -> MessageDB:
        row = MessageDB(sender_id=sender_id, receiver_id=receiver_id, content=content, is_read=False, created_at=now)
        session.add(row)
        session.flush()
        return row

    def mark_read(self, session: Session, reader_id: str, sender_id: str, now: datetime) -> int:
        """Mark every unread message from `sender_id` to `reader_id` as read."""
        stmt = (
            update(MessageDB)
            .where(
                MessageDB.sender_id == sender_id,
                MessageDB.receiver_id == reader_id,
                MessageDB.is_read.is_(False),
            )
            .values(is_read=True, read_at=now)
            .execution_options(synchronize_session=False)
        )
        return session.execute(stmt).rowcount or 0

    def conversation(self, session: Session, a: str, b: str, limit: int, offset: int) -> List[MessageDB]:
        """Messages between two users, newest first."""
        stmt = (
            select(MessageDB)
            .where(
                or_(
                    and_(MessageDB.sender_id == a, MessageDB.receiver_id == b),
                    and_(MessageDB.sender_id == b, MessageDB.receiver_id == a),
                )
            )
            .order_by(MessageDB.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(session.scalars(stmt).all())

    def messages_involving(self, session: Session, user_id: str) -> List[MessageDB]:
        """Every message the user sent or received, newest first."""
        stmt = (
            select(MessageDB)
            .where(or_(MessageDB.sender_id == user_id, MessageDB.receiver_id == user_id))
            .order_by(MessageDB.id.desc())
        )
        return list(session.scalars(stmt).all())

    def unread_counts(self, session: Session, reader_id: str) -> Dict[str, int]:
        """Unread message count per sender for one reader."""
        stmt = (
            select(MessageDB.sender_id, func.count(MessageDB.id))
            .where(MessageDB.receiver_id == reader_id, MessageDB.is_read.is_(False))
            .group_by(MessageDB.sender_id)
        )
        return {sender_id: count for sender_id, count in session.execute(stmt).all()}
