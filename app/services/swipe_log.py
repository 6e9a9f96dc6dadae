from datetime import date, datetime
from uuid import UUID

from neo4j import ManagedTransaction
from pydantic import UUID4

from app.db import DatabaseManager
from app.models.swipe import SwipeAction, SwipeRecord, SwipeResult

LIKE_ACTIONS = [SwipeAction.LIKE.value, SwipeAction.SUPER_LIKE.value]


class DatingError(Exception):
    """Base exception for dating-related errors."""

    pass


class ActionRecordingError(DatingError):
    """Exception raised when a swipe cannot be recorded."""

    pass


class DuplicateSwipeError(ActionRecordingError):
    """Exception raised when a user swipes on the same profile twice in a day."""

    pass


class SwipeLogService:
    """Durable, append-only log of swipe decisions.

    Every swipe is a SWIPED relationship between two User nodes. The log is
    the source of truth for quotas and matches; the profile index cache is
    derived from it.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager = db_manager

    def _count_likes_on(
        self, tx: ManagedTransaction, user_id: UUID4, day: date
    ) -> int:
        query = """
        MATCH (:User {user_id: $user_id})-[swipe:SWIPED {date: $date}]->(:User)
        WHERE swipe.action IN $like_actions
        RETURN count(swipe) AS count
        """
        result = tx.run(
            query, user_id=str(user_id), date=day, like_actions=LIKE_ACTIONS
        )
        if record := result.single():
            return record["count"]
        return 0

    def count_likes_on(self, user_id: UUID4, day: date) -> int:
        """Count the likes and super likes a user recorded on a day.

        Args:
            user_id: ID of the swiping user
            day: Local calendar date to count

        Returns:
            Number of like or super like records for that day
        """
        with self.db_manager.driver.session(
            database=self.db_manager.database
        ) as session:
            return session.execute_read(self._count_likes_on, user_id, day)

    def _liked_target_ids_on(
        self, tx: ManagedTransaction, user_id: UUID4, day: date
    ) -> set[UUID]:
        query = """
        MATCH (:User {user_id: $user_id})-[swipe:SWIPED {date: $date}]->(target:User)
        WHERE swipe.action IN $like_actions
        RETURN collect(DISTINCT target.user_id) AS target_ids
        """
        result = tx.run(
            query, user_id=str(user_id), date=day, like_actions=LIKE_ACTIONS
        )
        if record := result.single():
            return {UUID(target_id) for target_id in record["target_ids"]}
        return set()

    def liked_target_ids_on(self, user_id: UUID4, day: date) -> set[UUID]:
        """Get the profiles a user liked or super liked on a day.

        Args:
            user_id: ID of the swiping user
            day: Local calendar date to look at

        Returns:
            IDs of the liked profiles
        """
        with self.db_manager.driver.session(
            database=self.db_manager.database
        ) as session:
            return session.execute_read(self._liked_target_ids_on, user_id, day)

    def _matched_target_ids(
        self, tx: ManagedTransaction, user_id: UUID4
    ) -> set[UUID]:
        query = """
        MATCH (:User {user_id: $user_id})-[:SWIPED {is_matched: true}]->(target:User)
        RETURN collect(DISTINCT target.user_id) AS target_ids
        """
        result = tx.run(query, user_id=str(user_id))
        if record := result.single():
            return {UUID(target_id) for target_id in record["target_ids"]}
        return set()

    def matched_target_ids(self, user_id: UUID4) -> set[UUID]:
        """Get every profile a user has ever matched with.

        Args:
            user_id: ID of the user

        Returns:
            IDs of the matched profiles
        """
        with self.db_manager.driver.session(
            database=self.db_manager.database
        ) as session:
            return session.execute_read(self._matched_target_ids, user_id)

    def _lock_pair(
        self, tx: ManagedTransaction, user_id: UUID4, target_id: UUID4
    ) -> None:
        # Write-lock both users in a fixed order so concurrent swipes between
        # the same two people run one after the other.
        query = """
        MATCH (user:User)
        WHERE user.user_id IN $user_ids
        WITH user ORDER BY user.user_id
        SET user._swipe_lock = true
        REMOVE user._swipe_lock
        RETURN count(user) AS locked
        """
        record = tx.run(query, user_ids=sorted([str(user_id), str(target_id)])).single()
        if not record or record["locked"] < 2:
            raise ActionRecordingError("User not found")

    def _record_swipe(
        self,
        tx: ManagedTransaction,
        user_id: UUID4,
        target_id: UUID4,
        action: SwipeAction,
        day: date,
        timestamp: datetime,
    ) -> SwipeResult:
        """Write a swipe and settle the match state of the pair.

        Runs inside one write transaction: lock the pair, reject a same-day
        repeat, look for a prior like from the target, create the record and,
        on a match, flag the target's like as matched too.

        Args:
            tx: The database transaction
            user_id: ID of the user swiping
            target_id: ID of the profile being swiped on
            action: The decision being recorded
            day: Local calendar date of the swipe
            timestamp: When the swipe happened

        Returns:
            The stored record and whether a reciprocal like was found

        Raises:
            DuplicateSwipeError: If the user already swiped on the target today
            ActionRecordingError: If either user does not exist
        """
        self._lock_pair(tx, user_id, target_id)

        duplicate_query = """
        MATCH (:User {user_id: $user_id})-[swipe:SWIPED {date: $date}]->(:User {user_id: $target_id})
        RETURN count(swipe) AS existing
        """
        duplicate = tx.run(
            duplicate_query,
            user_id=str(user_id),
            target_id=str(target_id),
            date=day,
        ).single()
        if duplicate and duplicate["existing"]:
            raise DuplicateSwipeError("Profile already swiped today")

        # Only a plain like from the target counts as reciprocal
        reciprocal_query = """
        MATCH (:User {user_id: $target_id})-[swipe:SWIPED {action: $like}]->(:User {user_id: $user_id})
        RETURN count(swipe) > 0 AS reciprocal_found
        """
        reciprocal = tx.run(
            reciprocal_query,
            user_id=str(user_id),
            target_id=str(target_id),
            like=SwipeAction.LIKE.value,
        ).single()
        reciprocal_found = bool(reciprocal and reciprocal["reciprocal_found"])
        is_matched = reciprocal_found and action.is_like

        create_query = """
        MATCH (user:User {user_id: $user_id})
        MATCH (target:User {user_id: $target_id})
        CREATE (user)-[swipe:SWIPED {
            date: $date,
            action: $action,
            timestamp: $timestamp,
            is_matched: $is_matched
        }]->(target)
        RETURN count(swipe) AS created
        """
        created = tx.run(
            create_query,
            user_id=str(user_id),
            target_id=str(target_id),
            date=day,
            action=action.value,
            timestamp=timestamp,
            is_matched=is_matched,
        ).single()
        if not created or not created["created"]:
            raise ActionRecordingError("Failed to record swipe")

        if is_matched:
            match_query = """
            MATCH (:User {user_id: $target_id})-[swipe:SWIPED {action: $like}]->(:User {user_id: $user_id})
            SET swipe.is_matched = true
            """
            tx.run(
                match_query,
                user_id=str(user_id),
                target_id=str(target_id),
                like=SwipeAction.LIKE.value,
            ).consume()

        return SwipeResult(
            record=SwipeRecord(
                user_id=user_id,
                target_id=target_id,
                date=day,
                action=action,
                timestamp=timestamp,
                is_matched=is_matched,
            ),
            reciprocal_found=reciprocal_found,
        )

    def record_swipe(
        self,
        user_id: UUID4,
        target_id: UUID4,
        action: SwipeAction,
        day: date,
        timestamp: datetime,
    ) -> SwipeResult:
        """Record a swipe in a single write transaction.

        Args:
            user_id: ID of the user swiping
            target_id: ID of the profile being swiped on
            action: The decision being recorded
            day: Local calendar date of the swipe
            timestamp: When the swipe happened

        Returns:
            The stored record and whether a reciprocal like was found

        Raises:
            DuplicateSwipeError: If the user already swiped on the target today
            ActionRecordingError: If either user does not exist
        """
        with self.db_manager.driver.session(
            database=self.db_manager.database
        ) as session:
            return session.execute_write(
                self._record_swipe, user_id, target_id, action, day, timestamp
            )
