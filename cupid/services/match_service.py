"""Match lifecycle service: unmatching and listing live matches."""

from typing import List, Optional

import sentry_sdk
from sqlalchemy.orm import Session

from cupid.models.interaction import Interaction, MatchView
from cupid.services.relationship_store import RelationshipStore
from cupid.services.user_directory import UserDirectory
from cupid.utils.database import Database, utcnow
from cupid.utils.logging import get_logger

logger = get_logger(__name__)


class MatchService:
    """Reads and ends matches. Creating a match is the recorder's job."""

    def __init__(self, db: Database, users: UserDirectory, store: Optional[RelationshipStore] = None) -> None:
        self.db = db
        self.users = users
        self.store = store or RelationshipStore()

    def unmatch(self, caller_id: str, other_id: str) -> None:
        """
        End the match between two users, if there is one.

        Both directional rows go back to LIKED in one atomic unit. Missing rows
        are skipped, and calling this again changes nothing. The rows are kept
        so discovery still treats the pair as already evaluated.

        Args:
            caller_id (str): User ending the match.
            other_id (str): The other party.
        """

        def _unmatch(session: Session) -> int:
            self.store.lock_users(session, {caller_id, other_id})
            return self.store.clear_match(session, caller_id, other_id, utcnow())

        with sentry_sdk.start_span(op="match.unmatch", name=f"{caller_id} -x- {other_id}") as span:
            cleared = self.db.run_atomic(_unmatch, name="match.unmatch")
            span.set_data("rows_cleared", cleared)

        if cleared:
            logger.info("Users unmatched", user_id=caller_id, other=other_id, rows=cleared)
        else:
            logger.debug("Unmatch was a no-op", user_id=caller_id, other=other_id)

    def get_interaction(self, actor_id: str, target_id: str) -> Optional[Interaction]:
        """Return the stored (actor -> target) interaction, or None if the actor never evaluated the target."""

        def _load(session: Session) -> Optional[Interaction]:
            row = self.store.get_interaction(session, actor_id, target_id)
            return Interaction.model_validate(row) if row is not None else None

        return self.db.run_atomic(_load, name="interaction.get")

    def get_user_matches(self, user_id: str) -> List[MatchView]:
        """
        Get the live matches of a user, most recent first.

        Raises:
            NotFoundError: If the user does not exist.
        """

        def _load(session: Session) -> List[MatchView]:
            self.users.require(session, user_id)
            return [
                MatchView(user_id=row.target_id, username=username, matched_at=row.matched_at)
                for row, username in self.store.matched_partners(session, user_id)
            ]

        matches = self.db.run_atomic(_load, name="match.list")
        logger.debug("User matches retrieved", user_id=user_id, count=len(matches))
        return matches
