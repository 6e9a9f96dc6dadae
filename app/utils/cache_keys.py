import math
from datetime import UTC, datetime, time, timedelta

from pydantic import UUID4

MATCHED_TTL_SECONDS = 30 * 24 * 60 * 60


def _user_key(prefix: str, user_id: UUID4, index: str) -> str:
    return f"{prefix}:user:{user_id}:{index}"


def likes_count_key(prefix: str, user_id: UUID4) -> str:
    """Key of the integer count of likes a user recorded today."""
    return _user_key(prefix, user_id, "likes:count")


def liked_profiles_key(prefix: str, user_id: UUID4) -> str:
    """Key of the set of profile IDs a user liked today."""
    return _user_key(prefix, user_id, "likes:profiles")


def matched_profiles_key(prefix: str, user_id: UUID4) -> str:
    """Key of the set of profile IDs a user is matched with."""
    return _user_key(prefix, user_id, "match:profiles")


def seconds_until_midnight(now: datetime) -> int:
    """Return the seconds between ``now`` and the next local midnight.

    Partial seconds round up so a key never outlives the day it counts. The
    result is never below 1 so it is always a valid Redis expiry.

    Args:
        now: The current time, in the timezone whose midnight resets the quota.
            With a ``zoneinfo`` timezone, days that change daylight saving time
            are 23 or 25 hours long.

    Returns:
        Seconds until the start of the next calendar day
    """
    next_midnight = datetime.combine(
        now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo
    )
    # Same-tzinfo subtraction ignores offset changes, so compare in UTC
    remaining = next_midnight.astimezone(UTC) - now.astimezone(UTC)
    return max(1, math.ceil(remaining.total_seconds()))
