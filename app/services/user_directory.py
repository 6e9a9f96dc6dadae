from collections.abc import Iterable

from neo4j import ManagedTransaction
from pydantic import UUID4

from app.db import DatabaseManager
from app.models.user import Profile


class UserDirectoryService:
    """Read-only access to the User nodes that can be shown as candidates."""

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager = db_manager

    def _exists(self, tx: ManagedTransaction, user_id: UUID4) -> bool:
        query = """
        OPTIONAL MATCH (user:User {user_id: $user_id})
        RETURN user IS NOT NULL AS exists
        """
        if record := tx.run(query, user_id=str(user_id)).single():
            return record["exists"]
        return False

    def exists(self, user_id: UUID4) -> bool:
        """Check whether a user exists.

        Args:
            user_id: ID of the user to look up

        Returns:
            True if the user exists, False otherwise
        """
        with self.db_manager.driver.session(
            database=self.db_manager.database
        ) as session:
            return session.execute_read(self._exists, user_id)

    def _is_premium(self, tx: ManagedTransaction, user_id: UUID4) -> bool:
        query = """
        MATCH (user:User {user_id: $user_id})
        RETURN coalesce(user.is_premium, false) AS is_premium
        """
        if record := tx.run(query, user_id=str(user_id)).single():
            return record["is_premium"]
        return False

    def is_premium(self, user_id: UUID4) -> bool:
        """Check whether a user has premium status.

        Unknown users are treated as non-premium.
        """
        with self.db_manager.driver.session(
            database=self.db_manager.database
        ) as session:
            return session.execute_read(self._is_premium, user_id)

    def _fetch_random(
        self, tx: ManagedTransaction, exclude_ids: list[str], limit: int
    ) -> list[Profile]:
        query = """
        MATCH (user:User)
        WHERE NOT user.user_id IN $exclude_ids
        WITH user ORDER BY rand()
        LIMIT $limit
        RETURN user {
            .user_id,
            .username,
            .display_name,
            .bio,
            .profile_picture_s3_key,
            is_premium: coalesce(user.is_premium, false)
        } AS profile
        """
        result = tx.run(query, exclude_ids=exclude_ids, limit=limit)
        return [Profile(**record["profile"]) for record in result]

    def fetch_random(
        self, exclude_ids: Iterable[UUID4], limit: int
    ) -> list[Profile]:
        """Fetch profiles in random order, skipping the excluded IDs.

        Args:
            exclude_ids: IDs that must not be returned
            limit: Maximum number of profiles to return

        Returns:
            Up to ``limit`` profiles in random order
        """
        excluded = sorted({str(user_id) for user_id in exclude_ids})
        with self.db_manager.driver.session(
            database=self.db_manager.database
        ) as session:
            return session.execute_read(self._fetch_random, excluded, limit)
