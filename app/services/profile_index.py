import logging
from collections.abc import Callable
from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo

import redis
from pydantic import UUID4
from redis.client import Pipeline

from app.services.swipe_log import SwipeLogService
from app.utils.cache_keys import (
    MATCHED_TTL_SECONDS,
    liked_profiles_key,
    likes_count_key,
    matched_profiles_key,
    seconds_until_midnight,
)

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Current time in the server's local timezone."""
    return datetime.now().astimezone()


def zone_clock(name: str) -> Callable[[], datetime]:
    """Build a clock reading the current time in the IANA timezone ``name``.

    Unlike ``local_now``, whose fixed offset goes stale across a daylight
    saving change, the returned datetimes carry the zone's full rules.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the timezone is unknown
    """
    zone = ZoneInfo(name)
    return lambda: datetime.now(zone)


class ProfileIndexCache:
    """Redis cache of the per-user indexes derived from the swipe log.

    Three indexes are kept per user: how many likes they recorded today, which
    profiles they liked today, and which profiles they are matched with. Reads
    are cache-aside and rebuild a missing index from the swipe log. Writes are
    incremental and only touch an index that is already cached, so a partial
    index is never created.

    Redis is advisory. When it fails, reads are answered from the swipe log
    and writes are dropped with a warning. Swipe log errors propagate.

    Attributes:
        client: The Redis client
        swipe_log: Source of truth used to rebuild indexes
        key_prefix: Namespace prepended to every key
        clock: Returns the current local time
    """

    def __init__(
        self,
        client: redis.Redis,
        swipe_log: SwipeLogService,
        key_prefix: str = "dating",
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.client = client
        self.swipe_log = swipe_log
        self.key_prefix = key_prefix
        self.clock = clock

    def get_count(self, user_id: UUID4) -> int:
        """Get how many likes and super likes a user recorded today.

        Args:
            user_id: ID of the user

        Returns:
            Today's like count
        """
        key = likes_count_key(self.key_prefix, user_id)
        now = self.clock()
        try:
            cached = self.client.get(key)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Reading {key} failed, using swipe log: {e}")
            return self.swipe_log.count_likes_on(user_id, now.date())

        if cached is not None:
            return int(cached)

        logger.debug(f"Cache miss for {key}")
        count = self.swipe_log.count_likes_on(user_id, now.date())
        try:
            # NX keeps a value another request cached in the meantime
            self.client.set(key, count, ex=seconds_until_midnight(now), nx=True)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Caching {key} failed: {e}")
        return count

    def get_liked_today(self, user_id: UUID4) -> set[UUID]:
        """Get the profiles a user liked or super liked today."""
        now = self.clock()
        return self._get_set(
            liked_profiles_key(self.key_prefix, user_id),
            lambda: self.swipe_log.liked_target_ids_on(user_id, now.date()),
            seconds_until_midnight(now),
        )

    def get_matched(self, user_id: UUID4) -> set[UUID]:
        """Get every profile a user is matched with."""
        return self._get_set(
            matched_profiles_key(self.key_prefix, user_id),
            lambda: self.swipe_log.matched_target_ids(user_id),
            MATCHED_TTL_SECONDS,
        )

    def _get_set(
        self, key: str, rebuild: Callable[[], set[UUID]], ttl: int
    ) -> set[UUID]:
        try:
            members = self.client.smembers(key)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Reading {key} failed, using swipe log: {e}")
            return rebuild()

        if members:
            return {UUID(member) for member in members}

        # Redis has no empty sets, so an empty index is always rebuilt
        logger.debug(f"Cache miss for {key}")
        profile_ids = rebuild()
        if profile_ids:
            try:
                pipe = self.client.pipeline(transaction=True)
                pipe.sadd(key, *(str(profile_id) for profile_id in profile_ids))
                pipe.expire(key, ttl)
                pipe.execute()
            except redis.exceptions.RedisError as e:
                logger.warning(f"Caching {key} failed: {e}")
        return profile_ids

    def increment_count(self, user_id: UUID4) -> None:
        """Add one like to today's count, if the count is cached."""
        key = likes_count_key(self.key_prefix, user_id)
        self._update_if_cached(key, lambda pipe: pipe.incr(key))

    def add_liked(self, user_id: UUID4, target_id: UUID4) -> None:
        """Add a profile to today's liked set, if the set is cached."""
        key = liked_profiles_key(self.key_prefix, user_id)
        self._update_if_cached(key, lambda pipe: pipe.sadd(key, str(target_id)))

    def add_matched(self, user_id: UUID4, target_id: UUID4) -> None:
        """Add a profile to the matched set and re-arm its 30 day expiry."""
        key = matched_profiles_key(self.key_prefix, user_id)

        def _add(pipe: Pipeline) -> None:
            pipe.sadd(key, str(target_id))
            pipe.expire(key, MATCHED_TTL_SECONDS)

        self._update_if_cached(key, _add)

    def _update_if_cached(
        self, key: str, update: Callable[[Pipeline], object]
    ) -> None:
        def _transaction(pipe: Pipeline) -> None:
            if pipe.exists(key):
                pipe.multi()
                update(pipe)

        try:
            # WATCH retries if the key changes or expires mid-update
            self.client.transaction(_transaction, key)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Updating {key} failed: {e}")

    def invalidate(self, user_id: UUID4) -> None:
        """Drop all cached indexes of a user so the next read rebuilds them."""
        keys = [
            likes_count_key(self.key_prefix, user_id),
            liked_profiles_key(self.key_prefix, user_id),
            matched_profiles_key(self.key_prefix, user_id),
        ]
        try:
            self.client.delete(*keys)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Invalidating indexes of {user_id} failed: {e}")
