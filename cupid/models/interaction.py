"""Interaction and match models for the Cupid match engine."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class InteractionState(str, Enum):
    """
    State of one directed (actor -> target) relationship.

    NONE is never stored; it stands for "no row" when comparing pairs.
    A disliked row cannot become matched, so the old liked/matched boolean
    pair is collapsed into a single value.
    """

    NONE = "none"
    LIKED = "liked"  # Actor liked target, no reciprocal like (or unmatched later)
    DISLIKED = "disliked"  # Actor passed on target, terminal
    MATCHED = "matched"  # Both sides liked each other and the match is live

    @property
    def liked(self) -> bool:
        return self in (InteractionState.LIKED, InteractionState.MATCHED)

    @property
    def matched(self) -> bool:
        return self is InteractionState.MATCHED


def is_mutual_like(forward: InteractionState, reverse: InteractionState) -> bool:
    """
    Decide whether a new signal completes a match.

    Args:
        forward: State the actor is about to write (LIKED or DISLIKED).
        reverse: Current state of the target -> actor row, NONE if absent.

    Returns:
        True only when both directions are plain likes.
    """
    return forward is InteractionState.LIKED and reverse is InteractionState.LIKED


class Interaction(BaseModel):
    """Stored directed signal from `actor_id` to `target_id`."""

    actor_id: str
    target_id: str
    state: InteractionState
    created_at: datetime
    updated_at: Optional[datetime] = None
    matched_at: Optional[datetime] = None
    unmatched_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def liked(self) -> bool:
        return self.state.liked

    @property
    def matched(self) -> bool:
        return self.state.matched


class InteractionResult(BaseModel):
    """Outcome of recording a like/dislike, from the actor's point of view."""

    liked: bool
    matched: bool

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_state(cls, state: InteractionState) -> "InteractionResult":
        return cls(liked=state.liked, matched=state.matched)


class MatchView(BaseModel):
    """A live match as seen by one of its two users."""

    user_id: str  # The other user's ID
    username: Optional[str] = None
    matched_at: Optional[datetime] = None
