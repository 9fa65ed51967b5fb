"""Service layer for recording likes and dislikes and detecting matches."""

from typing import Optional

import sentry_sdk
from sqlalchemy.orm import Session

from cupid.models.interaction import InteractionResult, InteractionState, is_mutual_like
from cupid.models.notification import NotificationEvent, NotificationType
from cupid.services.notifications import NotificationDispatcher, dispatch_safely
from cupid.services.relationship_store import RelationshipStore
from cupid.services.user_directory import UserDirectory
from cupid.utils.database import Database, utcnow
from cupid.utils.errors import ConflictError, InvalidOperationError
from cupid.utils.logging import get_logger

logger = get_logger(__name__)


class InteractionRecorder:
    """
    Records one-directional preference signals.

    The existence checks, the duplicate check, the insert and the update of the
    reverse row all happen inside one atomic unit holding the pair lock, so two
    users liking each other at the same instant produce exactly one match.
    """

    def __init__(
        self,
        db: Database,
        users: UserDirectory,
        dispatcher: NotificationDispatcher,
        store: Optional[RelationshipStore] = None,
    ) -> None:
        self.db = db
        self.users = users
        self.dispatcher = dispatcher
        self.store = store or RelationshipStore()

    def like(self, actor_id: str, target_id: str) -> InteractionResult:
        """Record that `actor_id` likes `target_id`."""
        return self.record_interaction(actor_id, target_id, liked=True)

    def dislike(self, actor_id: str, target_id: str) -> InteractionResult:
        """Record that `actor_id` passes on `target_id`."""
        return self.record_interaction(actor_id, target_id, liked=False)

    def record_interaction(self, actor_id: str, target_id: str, liked: bool) -> InteractionResult:
        """
        Record a like or dislike and detect a mutual match.

        Args:
            actor_id (str): User expressing the preference.
            target_id (str): User the preference is about.
            liked (bool): True for a like, False for a dislike.

        Returns:
            InteractionResult: `liked`/`matched` for the actor's own signal.

        Raises:
            InvalidOperationError: If the actor targets themselves.
            NotFoundError: If the target (or actor) does not exist.
            ConflictError: If the actor already interacted with the target.
            TransientError: If storage contention outlasted the retry budget.
        """
        if actor_id == target_id:
            logger.warning("Self interaction rejected", actor=actor_id)
            raise InvalidOperationError("You cannot interact with yourself", details={"user_id": actor_id})

        requested = InteractionState.LIKED if liked else InteractionState.DISLIKED

        def _record(session: Session) -> InteractionState:
            self.users.require(session, target_id, actor_id=actor_id, lock=True)

            if self.store.get_interaction(session, actor_id, target_id) is not None:
                logger.warning("Duplicate interaction rejected", actor=actor_id, target=target_id)
                raise ConflictError(
                    "You have already interacted with this user",
                    details={"actor_id": actor_id, "target_id": target_id},
                )

            reverse = self.store.get_interaction(session, target_id, actor_id)
            reverse_state = reverse.state if reverse is not None else InteractionState.NONE
            now = utcnow()

            if reverse is not None and is_mutual_like(requested, reverse_state):
                self.store.insert_interaction(session, actor_id, target_id, InteractionState.MATCHED, now)
                self.store.mark_matched(session, reverse, now)
                return InteractionState.MATCHED

            self.store.insert_interaction(session, actor_id, target_id, requested, now)
            return requested

        with sentry_sdk.start_span(op="interaction.record", name=f"{actor_id} -> {target_id}") as span:
            span.set_data("liked", liked)
            state = self.db.run_atomic(_record, name="interaction.record")
            span.set_data("state", state.value)

        result = InteractionResult.from_state(state)
        logger.info(
            "Interaction recorded",
            actor=actor_id,
            target=target_id,
            liked=result.liked,
            matched=result.matched,
        )

        self._notify(actor_id, target_id, result)
        return result

    def _notify(self, actor_id: str, target_id: str, result: InteractionResult) -> None:
        """Raise notification events after the transaction has committed."""
        if result.matched:
            dispatch_safely(
                self.dispatcher,
                NotificationEvent(type=NotificationType.MATCH, recipient_id=actor_id, from_user_id=target_id),
            )
            dispatch_safely(
                self.dispatcher,
                NotificationEvent(type=NotificationType.MATCH, recipient_id=target_id, from_user_id=actor_id),
            )
        elif result.liked:
            dispatch_safely(
                self.dispatcher,
                NotificationEvent(type=NotificationType.LIKE, recipient_id=target_id, from_user_id=actor_id),
            )
