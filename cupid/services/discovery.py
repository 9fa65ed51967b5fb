"""Exclusion rule candidate discovery relies on.

Ranking and profile filtering live in the discovery service; this module only
answers "may this candidate ever be shown to this user?".
"""

from typing import Optional, Set

from sqlalchemy.orm import Session

from cupid.services.relationship_store import RelationshipStore
from cupid.utils.database import Database
from cupid.utils.logging import get_logger

logger = get_logger(__name__)


class DiscoveryFilter:
    """Computes the users a person must never be offered as a new candidate."""

    def __init__(self, db: Database, store: Optional[RelationshipStore] = None) -> None:
        self.db = db
        self.store = store or RelationshipStore()

    def _excluded(self, session: Session, user_id: str) -> Set[str]:
        excluded = {user_id}
        # Unmatched pairs keep their rows, so they stay excluded here.
        excluded |= self.store.interacted_target_ids(session, user_id)
        excluded |= self.store.blocked_ids(session, user_id)
        excluded |= self.store.blocker_ids(session, user_id)
        return excluded

    def excluded_ids(self, user_id: str) -> Set[str]:
        """
        Return every user ID that must not be surfaced to `user_id`.

        The set holds the user themselves, everyone they already liked or
        disliked, everyone they blocked and everyone who blocked them.
        """
        excluded = self.db.run_atomic(lambda session: self._excluded(session, user_id), name="discovery.excluded")
        logger.debug("Discovery exclusions computed", user_id=user_id, count=len(excluded))
        return excluded

    def is_eligible(self, user_id: str, candidate_id: str) -> bool:
        return candidate_id not in self.excluded_ids(user_id)
