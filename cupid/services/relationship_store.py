"""Keyed storage for interactions, block sets and the report log.

Every method runs on a session owned by the caller's atomic unit
(`Database.atomic` / `Database.run_atomic`). Nothing here commits and nothing
here decides business outcomes.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy import ColumnElement, and_, delete, exists, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cupid.models.interaction import InteractionState
from cupid.utils.database import BlockDB, InteractionDB, ReportDB, UserDB
from cupid.utils.errors import ConflictError


def _between(a: str, b: str) -> ColumnElement[bool]:
    """Filter matching the interaction rows of a pair in both directions."""
    return or_(
        and_(InteractionDB.actor_id == a, InteractionDB.target_id == b),
        and_(InteractionDB.actor_id == b, InteractionDB.target_id == a),
    )


class RelationshipStore:
    """Row-level access to the relationship graph."""

    # Users

    def lock_users(self, session: Session, user_ids: Iterable[str]) -> Set[str]:
        """
        Lock the directory rows of the given users and return the ones that exist.

        Rows are locked in ascending ID order so two transactions touching the
        same pair cannot deadlock. On SQLite the transaction already holds the
        database write lock and FOR UPDATE is not rendered.
        """
        ids = sorted(set(user_ids))
        stmt = select(UserDB.id).where(UserDB.id.in_(ids)).order_by(UserDB.id).with_for_update()
        return set(session.scalars(stmt).all())

    def existing_users(self, session: Session, user_ids: Iterable[str]) -> Set[str]:
        stmt = select(UserDB.id).where(UserDB.id.in_(set(user_ids)))
        return set(session.scalars(stmt).all())

    # Interactions

    def get_interaction(self, session: Session, actor_id: str, target_id: str) -> Optional[InteractionDB]:
        return session.get(InteractionDB, (actor_id, target_id))

    def insert_interaction(
        self,
        session: Session,
        actor_id: str,
        target_id: str,
        state: InteractionState,
        now: datetime,
    ) -> InteractionDB:
        """
        Insert a new directed interaction.

        Raises:
            ConflictError: If the store already holds a row for the ordered pair.
        """
        row = InteractionDB(
            actor_id=actor_id,
            target_id=target_id,
            state=state,
            created_at=now,
            updated_at=now,
            matched_at=now if state is InteractionState.MATCHED else None,
        )
        session.add(row)
        try:
            session.flush()
        except IntegrityError as e:
            raise ConflictError(
                "You have already interacted with this user",
                details={"actor_id": actor_id, "target_id": target_id},
            ) from e
        return row

    def mark_matched(self, session: Session, row: InteractionDB, now: datetime) -> None:
        row.state = InteractionState.MATCHED
        row.matched_at = now
        row.updated_at = now
        session.flush()

    def clear_match(self, session: Session, a: str, b: str, now: datetime) -> int:
        """Turn any MATCHED row of the pair back into LIKED. Returns the number of rows changed."""
        stmt = (
            update(InteractionDB)
            .where(_between(a, b), InteractionDB.state == InteractionState.MATCHED)
            .values(state=InteractionState.LIKED, unmatched_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return session.execute(stmt).rowcount or 0

    def is_matched(self, session: Session, a: str, b: str) -> bool:
        stmt = select(exists().where(_between(a, b), InteractionDB.state == InteractionState.MATCHED))
        return bool(session.scalar(stmt))

    def matched_partners(self, session: Session, user_id: str) -> List[Tuple[InteractionDB, Optional[str]]]:
        """Return the user's MATCHED outgoing rows with the partner's username, newest match first."""
        stmt = (
            select(InteractionDB, UserDB.username)
            .join(UserDB, UserDB.id == InteractionDB.target_id)
            .where(InteractionDB.actor_id == user_id, InteractionDB.state == InteractionState.MATCHED)
            .order_by(InteractionDB.matched_at.desc(), InteractionDB.target_id)
        )
        return [(row, username) for row, username in session.execute(stmt).all()]

    def interacted_target_ids(self, session: Session, user_id: str) -> Set[str]:
        stmt = select(InteractionDB.target_id).where(InteractionDB.actor_id == user_id)
        return set(session.scalars(stmt).all())

    # Block sets

    def is_blocked(self, session: Session, blocker_id: str, blocked_id: str) -> bool:
        return session.get(BlockDB, (blocker_id, blocked_id)) is not None

    def add_block(self, session: Session, blocker_id: str, blocked_id: str, now: datetime) -> BlockDB:
        """
        Add `blocked_id` to the block set of `blocker_id`.

        Raises:
            ConflictError: If the entry already exists.
        """
        row = BlockDB(blocker_id=blocker_id, blocked_id=blocked_id, created_at=now)
        session.add(row)
        try:
            session.flush()
        except IntegrityError as e:
            raise ConflictError(
                "User is already blocked",
                details={"blocker_id": blocker_id, "blocked_id": blocked_id},
            ) from e
        return row

    def remove_block(self, session: Session, blocker_id: str, blocked_id: str) -> bool:
        stmt = delete(BlockDB).where(BlockDB.blocker_id == blocker_id, BlockDB.blocked_id == blocked_id)
        return bool(session.execute(stmt).rowcount)

    def blocked_ids(self, session: Session, blocker_id: str) -> Set[str]:
        stmt = select(BlockDB.blocked_id).where(BlockDB.blocker_id == blocker_id)
        return set(session.scalars(stmt).all())

    def blocker_ids(self, session: Session, blocked_id: str) -> Set[str]:
        """Users whose block set contains `blocked_id`."""
        stmt = select(BlockDB.blocker_id).where(BlockDB.blocked_id == blocked_id)
        return set(session.scalars(stmt).all())

    # Reports

    def append_report(
        self,
        session: Session,
        report_id: str,
        reporter_id: str,
        target_id: str,
        reason: str,
        now: datetime,
    ) -> ReportDB:
        row = ReportDB(id=report_id, reporter_id=reporter_id, target_id=target_id, reason=reason, created_at=now)
        session.add(row)
        session.flush()
        return row

    def list_reports(self, session: Session, target_id: Optional[str] = None) -> List[ReportDB]:
        stmt = select(ReportDB).order_by(ReportDB.created_at.desc(), ReportDB.id)
        if target_id is not None:
            stmt = stmt.where(ReportDB.target_id == target_id)
        return list(session.scalars(stmt).all())

