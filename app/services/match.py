import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import UUID4

from app.models.swipe import Outcome, SwipeAction
from app.services.profile_index import ProfileIndexCache, local_now
from app.services.swipe_log import ActionRecordingError, SwipeLogService
from app.services.user_directory import UserDirectoryService

logger = logging.getLogger(__name__)


def classify_outcome(action: SwipeAction, reciprocal_found: bool) -> Outcome:
    """Classify a recorded swipe.

    Args:
        action: The decision that was recorded
        reciprocal_found: Whether the target had already liked the user

    Returns:
        MATCH for a like answering a like, MISSED for a pass answering a like,
        NO_LIKE otherwise
    """
    if reciprocal_found and action.is_like:
        return Outcome.MATCH
    if reciprocal_found and action == SwipeAction.PASS:
        return Outcome.MISSED
    return Outcome.NO_LIKE


class MatchService:
    """Service that records swipes and detects matches.

    A swipe goes through the daily quota check, the target lookup, a single
    write transaction against the swipe log, and finally the profile index
    cache. The cache is only updated after the swipe log commits, so a failed
    write never leaves a like counted.

    Attributes:
        DEFAULT_DAILY_LIKE_LIMIT: Likes a non-premium user may record per day
    """

    DEFAULT_DAILY_LIKE_LIMIT = 10

    def __init__(
        self,
        swipe_log: SwipeLogService,
        user_directory: UserDirectoryService,
        index_cache: ProfileIndexCache,
        daily_like_limit: int = DEFAULT_DAILY_LIKE_LIMIT,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.swipe_log = swipe_log
        self.user_directory = user_directory
        self.index_cache = index_cache
        self.daily_like_limit = daily_like_limit
        self.clock = clock

    def _limit_reached(self, user_id: UUID4) -> bool:
        if self.index_cache.get_count(user_id) < self.daily_like_limit:
            return False
        return not self.user_directory.is_premium(user_id)

    def record_swipe(
        self, user_id: UUID4, target_id: UUID4, action: SwipeAction
    ) -> Outcome:
        """Record a like, super like or pass on a profile.

        Args:
            user_id: ID of the user swiping
            target_id: ID of the profile being swiped on
            action: The decision being recorded

        Returns:
            The outcome of the swipe. LIMIT_REACHED and NOT_FOUND leave the
            swipe log and the cache untouched.

        Raises:
            ActionRecordingError: If the user swipes on themselves
            DuplicateSwipeError: If the user already swiped on the target today
            neo4j.exceptions.Neo4jError: If the swipe log cannot be read or written
        """
        if user_id == target_id:
            raise ActionRecordingError("Cannot swipe on yourself")

        if self._limit_reached(user_id):
            logger.info(f"User {user_id} reached the daily like limit")
            return Outcome.LIMIT_REACHED

        if not self.user_directory.exists(target_id):
            return Outcome.NOT_FOUND

        now = self.clock()
        result = self.swipe_log.record_swipe(
            user_id, target_id, action, now.date(), now
        )
        outcome = classify_outcome(action, result.reciprocal_found)

        if action.is_like:
            self.index_cache.increment_count(user_id)
            self.index_cache.add_liked(user_id, target_id)
        if outcome == Outcome.MATCH:
            self.index_cache.add_matched(user_id, target_id)
            self.index_cache.add_matched(target_id, user_id)

        logger.info(f"User {user_id} swiped {action} on {target_id}: {outcome}")
        return outcome
