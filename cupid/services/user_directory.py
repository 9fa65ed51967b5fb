"""User directory lookups for the Cupid match engine."""

from typing import Optional

import sentry_sdk
from sqlalchemy.orm import Session

from cupid.models.user import User
from cupid.services.relationship_store import RelationshipStore
from cupid.utils.database import Database, UserDB, utcnow
from cupid.utils.errors import ConflictError, NotFoundError
from cupid.utils.logging import get_logger

logger = get_logger(__name__)


class UserDirectory:
    """Existence checks for user IDs. Profile data is owned by another service."""

    def __init__(self, db: Database, store: Optional[RelationshipStore] = None) -> None:
        self.db = db
        self.store = store or RelationshipStore()

    def require(
        self,
        session: Session,
        target_id: str,
        *,
        actor_id: Optional[str] = None,
        lock: bool = False,
    ) -> None:
        """
        Ensure the target (and optionally the actor) exist within the caller's transaction.

        Args:
            session: Session of the current atomic unit.
            target_id: User the action is aimed at.
            actor_id: Calling user, checked as well when given.
            lock: Take row locks on the users (pair lock) while checking.

        Raises:
            NotFoundError: If either user is absent.
        """
        ids = {target_id} if actor_id is None else {target_id, actor_id}
        found = self.store.lock_users(session, ids) if lock else self.store.existing_users(session, ids)

        if target_id not in found:
            logger.warning("Target user not found", target=target_id)
            raise NotFoundError(f"Target user not found: {target_id}", details={"user_id": target_id})
        if actor_id is not None and actor_id not in found:
            logger.warning("User not found", user_id=actor_id)
            raise NotFoundError(f"User not found: {actor_id}", details={"user_id": actor_id})

    def exists(self, user_id: str) -> bool:
        return self.db.run_atomic(lambda session: session.get(UserDB, user_id) is not None, name="user.exists")

    def get_user(self, user_id: str) -> User:
        """Get a user by ID.

        Args:
            user_id: User ID

        Returns:
            User object

        Raises:
            NotFoundError: If user not found
        """
        with sentry_sdk.start_span(op="user.get", name=user_id) as span:

            def _load(session: Session) -> Optional[User]:
                row = session.get(UserDB, user_id)
                return User.model_validate(row) if row is not None else None

            user = self.db.run_atomic(_load, name="user.get")
            if user is None:
                logger.warning("User not found", user_id=user_id)
                span.set_status("not_found")
                raise NotFoundError(f"User not found: {user_id}", details={"user_id": user_id})

            logger.debug("User retrieved from database", user_id=user_id)
            return user

    def create_user(self, user_id: str, username: Optional[str] = None) -> User:
        """Register a user ID in the directory.

        Args:
            user_id: User ID issued by the identity provider
            username: Optional display handle

        Returns:
            Created user object

        Raises:
            ConflictError: If the user already exists
        """
        user = User(id=user_id, username=username)

        def _create(session: Session) -> User:
            if session.get(UserDB, user.id) is not None:
                raise ConflictError(f"User already exists: {user.id}", details={"user_id": user.id})
            row = UserDB(id=user.id, username=user.username, created_at=utcnow())
            session.add(row)
            session.flush()
            return User.model_validate(row)

        with sentry_sdk.start_span(op="user.create", name=user_id):
            created = self.db.run_atomic(_create, name="user.create")
        logger.info("User created", user_id=user_id)
        return created
