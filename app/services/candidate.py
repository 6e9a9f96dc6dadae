from collections.abc import Iterable

from pydantic import UUID4

from app.models.user import Profile
from app.services.profile_index import ProfileIndexCache
from app.services.user_directory import UserDirectoryService


class CandidateService:
    """Service for picking the next profiles to show a user.

    Profiles the user liked today, profiles they are matched with, the user
    themselves and any caller supplied IDs are never returned. Selection is
    random; ranking is not attempted.

    Attributes:
        DEFAULT_OVERSAMPLE: Extra profiles requested beyond the limit
    """

    DEFAULT_OVERSAMPLE = 10

    def __init__(
        self,
        user_directory: UserDirectoryService,
        index_cache: ProfileIndexCache,
        oversample: int = DEFAULT_OVERSAMPLE,
    ) -> None:
        self.user_directory = user_directory
        self.index_cache = index_cache
        self.oversample = oversample

    def get_candidates(
        self, user_id: UUID4, exclude_ids: Iterable[UUID4], limit: int
    ) -> list[Profile]:
        """Get up to ``limit`` unseen profiles for a user.

        Args:
            user_id: ID of the user browsing
            exclude_ids: Additional IDs the caller has already shown
            limit: Maximum number of profiles to return

        Returns:
            Randomly selected profiles; fewer than ``limit`` when the pool runs dry

        Raises:
            ValueError: If limit is not positive
        """
        if limit < 1:
            raise ValueError("Limit must be at least 1")

        excluded = set(exclude_ids)
        excluded |= self.index_cache.get_liked_today(user_id)
        excluded |= self.index_cache.get_matched(user_id)
        excluded.add(user_id)

        profiles = self.user_directory.fetch_random(excluded, limit + self.oversample)
        return [
            profile for profile in profiles if profile.user_id not in excluded
        ][:limit]
