from datetime import date, datetime
from enum import Enum

from pydantic import UUID4, BaseModel, ConfigDict


class SwipeAction(str, Enum):
    """Decisions a user can record about a candidate profile.

    Attributes:
        LIKE: Swipe right
        PASS: Swipe left
        SUPER_LIKE: Like with extra emphasis, counts against the quota like LIKE
    """

    LIKE = "like"
    PASS = "pass"
    SUPER_LIKE = "superlike"

    @property
    def is_like(self) -> bool:
        """Whether the action counts as a like for quota and matching."""
        return self in (SwipeAction.LIKE, SwipeAction.SUPER_LIKE)

    def __str__(self) -> str:
        return self.value


class Outcome(str, Enum):
    """Classification of a single swipe, computed per request.

    Attributes:
        MATCH: Both users like each other
        MISSED: The user passed on someone who had liked them
        LIMIT_REACHED: The user has used up today's likes
        NO_LIKE: No reciprocal like exists yet
        NOT_FOUND: The target profile does not exist
    """

    MATCH = "match"
    MISSED = "missed"
    LIMIT_REACHED = "limit_reached"
    NO_LIKE = "no_like"
    NOT_FOUND = "not_found"

    @property
    def label(self) -> str:
        return _OUTCOME_LABELS[self]

    def __str__(self) -> str:
        return self.label


_OUTCOME_LABELS = {
    Outcome.MATCH: "Match",
    Outcome.MISSED: "Missed",
    Outcome.LIMIT_REACHED: "Limit Reached",
    Outcome.NO_LIKE: "No Like",
    Outcome.NOT_FOUND: "Not Found",
}


class SwipeRecord(BaseModel):
    """One decision by a user about another user on a given day.

    Stored as a SWIPED relationship between the two User nodes. At most one
    record exists per (user_id, target_id, date).

    Attributes:
        user_id: ID of the user who swiped
        target_id: ID of the profile that was swiped on
        date: Local calendar date of the swipe
        action: The decision that was recorded
        timestamp: When the swipe was recorded
        is_matched: Whether both directions are confirmed likes
    """

    model_config = ConfigDict(frozen=True)

    user_id: UUID4
    target_id: UUID4
    date: date
    action: SwipeAction
    timestamp: datetime
    is_matched: bool = False


class SwipeResult(BaseModel):
    """Result of writing a swipe to the swipe log.

    Attributes:
        record: The stored swipe record
        reciprocal_found: Whether the target had already liked the user
    """

    model_config = ConfigDict(frozen=True)

    record: SwipeRecord
    reciprocal_found: bool
