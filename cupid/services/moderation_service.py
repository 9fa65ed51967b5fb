"""Moderation service: per-user block sets and the report log."""

import uuid
from typing import List, Optional

import sentry_sdk
from sqlalchemy.orm import Session

from cupid.config import get_settings
from cupid.models.moderation import Report
from cupid.services.relationship_store import RelationshipStore
from cupid.services.user_directory import UserDirectory
from cupid.utils.database import Database, utcnow
from cupid.utils.errors import ConflictError, InvalidOperationError, ValidationError
from cupid.utils.logging import get_logger

logger = get_logger(__name__)


class ModerationService:
    """
    Block and report handling.

    Neither operation touches match state. Blocking keeps message history, and a
    report is an independent append-only record.
    """

    def __init__(self, db: Database, users: UserDirectory, store: Optional[RelationshipStore] = None) -> None:
        self.db = db
        self.users = users
        self.store = store or RelationshipStore()

    def block(self, actor_id: str, target_id: str) -> None:
        """
        Add `target_id` to the actor's block set.

        Raises:
            InvalidOperationError: If the actor targets themselves.
            NotFoundError: If the target does not exist.
            ConflictError: If the target is already blocked.
        """
        if actor_id == target_id:
            raise InvalidOperationError("You cannot block yourself", details={"user_id": actor_id})

        def _block(session: Session) -> None:
            self.users.require(session, target_id, actor_id=actor_id, lock=True)
            if self.store.is_blocked(session, actor_id, target_id):
                logger.warning("Duplicate block rejected", actor=actor_id, target=target_id)
                raise ConflictError(
                    "User is already blocked",
                    details={"blocker_id": actor_id, "blocked_id": target_id},
                )
            self.store.add_block(session, actor_id, target_id, utcnow())

        with sentry_sdk.start_span(op="moderation.block", name=f"{actor_id} -> {target_id}"):
            self.db.run_atomic(_block, name="moderation.block")
        logger.info("User blocked", actor=actor_id, target=target_id)

    def unblock(self, actor_id: str, target_id: str) -> None:
        """
        Remove `target_id` from the actor's block set.

        Raises:
            InvalidOperationError: If the actor targets themselves or the target is not blocked.
            NotFoundError: If the target does not exist.
        """
        if actor_id == target_id:
            raise InvalidOperationError("You cannot unblock yourself", details={"user_id": actor_id})

        def _unblock(session: Session) -> None:
            self.users.require(session, target_id, actor_id=actor_id, lock=True)
            if not self.store.remove_block(session, actor_id, target_id):
                logger.warning("Unblock of a user who is not blocked", actor=actor_id, target=target_id)
                raise InvalidOperationError(
                    "User is not blocked",
                    details={"blocker_id": actor_id, "blocked_id": target_id},
                )

        with sentry_sdk.start_span(op="moderation.unblock", name=f"{actor_id} -> {target_id}"):
            self.db.run_atomic(_unblock, name="moderation.unblock")
        logger.info("User unblocked", actor=actor_id, target=target_id)

    def is_blocked(self, actor_id: str, target_id: str) -> bool:
        return self.db.run_atomic(
            lambda session: self.store.is_blocked(session, actor_id, target_id), name="moderation.is_blocked"
        )

    def list_blocked(self, actor_id: str) -> List[str]:
        blocked = self.db.run_atomic(
            lambda session: self.store.blocked_ids(session, actor_id), name="moderation.list_blocked"
        )
        return sorted(blocked)

    def report(self, reporter_id: str, target_id: str, reason: str) -> Report:
        """
        File a report against another user.

        Args:
            reporter_id (str): User filing the report.
            target_id (str): Reported user.
            reason (str): Free-text reason; stored stripped.

        Returns:
            Report: The created record.

        Raises:
            InvalidOperationError: If the reporter targets themselves.
            ValidationError: If the reason is empty or too long.
            NotFoundError: If the target does not exist.
        """
        if reporter_id == target_id:
            raise InvalidOperationError("You cannot report yourself", details={"user_id": reporter_id})

        reason = (reason or "").strip()
        max_length = get_settings().MAX_REPORT_REASON_LENGTH
        if not reason:
            raise ValidationError("Reason is required")
        if len(reason) > max_length:
            raise ValidationError(
                f"Reason exceeds {max_length} characters",
                details={"max_length": max_length, "length": len(reason)},
            )

        def _report(session: Session) -> Report:
            self.users.require(session, target_id, actor_id=reporter_id)
            row = self.store.append_report(session, str(uuid.uuid4()), reporter_id, target_id, reason, utcnow())
            return Report.model_validate(row)

        with sentry_sdk.start_span(op="moderation.report", name=f"{reporter_id} -> {target_id}"):
            report = self.db.run_atomic(_report, name="moderation.report")

        logger.info("Report submitted", report_id=report.id, reporter=reporter_id, target=target_id)
        return report

    def list_reports(self, target_id: Optional[str] = None) -> List[Report]:
        """Return submitted reports, newest first, optionally for one reported user."""

        def _load(session: Session) -> List[Report]:
            return [Report.model_validate(row) for row in self.store.list_reports(session, target_id)]

        return self.db.run_atomic(_load, name="moderation.list_reports")
