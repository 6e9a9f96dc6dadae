from __future__ import annotations

import os
import random
from collections.abc import Callable, Generator, Iterable
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID, uuid4

import pytest
import redis
from neo4j.exceptions import DriverError, Neo4jError, ServiceUnavailable
from pydantic import UUID4

from app.config import Settings
from app.db import DatabaseManager
from app.models.swipe import SwipeAction, SwipeRecord, SwipeResult
from app.models.user import Profile
from app.services.candidate import CandidateService
from app.services.match import MatchService
from app.services.profile_index import ProfileIndexCache
from app.services.swipe_log import DuplicateSwipeError

TEST_NOW = datetime(2024, 5, 1, 15, 30, tzinfo=UTC)

# Integration test configuration
TEST_NEO4J_URI = os.getenv("TEST_NEO4J_URI", "bolt://localhost:7687")
TEST_NEO4J_USER = os.getenv("TEST_NEO4J_USER", "neo4j")
TEST_NEO4J_PASSWORD = os.getenv("TEST_NEO4J_PASSWORD", "password")
TEST_NEO4J_DATABASE = os.getenv("TEST_NEO4J_DATABASE", "neo4j")


class FakePipeline:
    """Pipeline double: commands run immediately until ``multi`` starts queuing."""

    def __init__(self, client: "FakeRedis", queued: bool) -> None:
        self.client = client
        self.queue: list[Callable[[], Any]] | None = [] if queued else None

    def multi(self) -> None:
        self.queue = []

    def execute(self) -> list[Any]:
        if self.queue is None:
            return []
        queue, self.queue = self.queue, None
        return [command() for command in queue]

    def __getattr__(self, name: str) -> Any:
        command = getattr(self.client, name)
        if self.queue is None:
            return command

        def _queue(*args: Any, **kwargs: Any) -> "FakePipeline":
            self.queue.append(lambda: command(*args, **kwargs))
            return self

        return _queue


class FakeRedis:
    """In-memory stand-in for the subset of redis-py the index cache uses."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise redis.exceptions.ConnectionError("Redis is down")

    def _has(self, key: str) -> bool:
        return key in self.values or bool(self.sets.get(key))

    def get(self, key: str) -> str | None:
        self._check()
        return self.values.get(key)

    def set(
        self, key: str, value: Any, ex: int | None = None, nx: bool = False
    ) -> bool | None:
        self._check()
        if nx and self._has(key):
            return None
        self.values[key] = str(value)
        if ex is not None:
            self.ttls[key] = ex
        return True

    def incr(self, key: str) -> int:
        self._check()
        value = int(self.values.get(key, "0")) + 1
        self.values[key] = str(value)
        return value

    def exists(self, *keys: str) -> int:
        self._check()
        return sum(1 for key in keys if self._has(key))

    def expire(self, key: str, seconds: int) -> bool:
        self._check()
        if not self._has(key):
            return False
        self.ttls[key] = seconds
        return True

    def ttl(self, key: str) -> int:
        self._check()
        if not self._has(key):
            return -2
        return self.ttls.get(key, -1)

    def sadd(self, key: str, *members: Any) -> int:
        self._check()
        members_set = self.sets.setdefault(key, set())
        before = len(members_set)
        members_set.update(str(member) for member in members)
        return len(members_set) - before

    def smembers(self, key: str) -> set[str]:
        self._check()
        return set(self.sets.get(key, set()))

    def scard(self, key: str) -> int:
        self._check()
        return len(self.sets.get(key, set()))

    def delete(self, *keys: str) -> int:
        self._check()
        deleted = 0
        for key in keys:
            if self._has(key):
                deleted += 1
            self.values.pop(key, None)
            self.sets.pop(key, None)
            self.ttls.pop(key, None)
        return deleted

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, queued=True)

    def transaction(self, func: Callable[[FakePipeline], Any], *watches: str) -> list:
        pipe = FakePipeline(self, queued=False)
        func(pipe)
        return pipe.execute()

    def flushall(self) -> None:
        self.values.clear()
        self.sets.clear()
        self.ttls.clear()


class FakeSwipeLog:
    """In-memory swipe log with the same rules as the Neo4j one."""

    def __init__(self) -> None:
        self.records: list[SwipeRecord] = []
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise ServiceUnavailable("Neo4j is down")

    def _likes_on(self, user_id: UUID4, day: date) -> list[SwipeRecord]:
        return [
            record
            for record in self.records
            if record.user_id == user_id
            and record.date == day
            and record.action.is_like
        ]

    def count_likes_on(self, user_id: UUID4, day: date) -> int:
        self._check()
        return len(self._likes_on(user_id, day))

    def liked_target_ids_on(self, user_id: UUID4, day: date) -> set[UUID]:
        self._check()
        return {record.target_id for record in self._likes_on(user_id, day)}

    def matched_target_ids(self, user_id: UUID4) -> set[UUID]:
        self._check()
        return {
            record.target_id
            for record in self.records
            if record.user_id == user_id and record.is_matched
        }

    def record_swipe(
        self,
        user_id: UUID4,
        target_id: UUID4,
        action: SwipeAction,
        day: date,
        timestamp: datetime,
    ) -> SwipeResult:
        self._check()
        if any(
            record.user_id == user_id
            and record.target_id == target_id
            and record.date == day
            for record in self.records
        ):
            raise DuplicateSwipeError("Profile already swiped today")

        reciprocal = [
            index
            for index, record in enumerate(self.records)
            if record.user_id == target_id
            and record.target_id == user_id
            and record.action == SwipeAction.LIKE
        ]
        is_matched = bool(reciprocal) and action.is_like
        record = SwipeRecord(
            user_id=user_id,
            target_id=target_id,
            date=day,
            action=action,
            timestamp=timestamp,
            is_matched=is_matched,
        )
        self.records.append(record)
        if is_matched:
            for index in reciprocal:
                self.records[index] = self.records[index].model_copy(
                    update={"is_matched": True}
                )
        return SwipeResult(record=record, reciprocal_found=bool(reciprocal))


class FakeUserDirectory:
    """In-memory user directory."""

    def __init__(self) -> None:
        self.profiles: dict[UUID, Profile] = {}
        self.fetch_calls: list[tuple[set[UUID], int]] = []

    def add(self, is_premium: bool = False) -> Profile:
        user_id = uuid4()
        profile = Profile(
            user_id=user_id,
            username=f"user_{user_id.hex[:8]}",
            display_name="Test User",
            is_premium=is_premium,
        )
        self.profiles[user_id] = profile
        return profile

    def exists(self, user_id: UUID4) -> bool:
        return user_id in self.profiles

    def is_premium(self, user_id: UUID4) -> bool:
        profile = self.profiles.get(user_id)
        return bool(profile and profile.is_premium)

    def fetch_random(self, exclude_ids: Iterable[UUID4], limit: int) -> list[Profile]:
        excluded = set(exclude_ids)
        self.fetch_calls.append((excluded, limit))
        pool = [
            profile
            for user_id, profile in self.profiles.items()
            if user_id not in excluded
        ]
        random.shuffle(pool)
        return pool[:limit]


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: TEST_NOW


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def user_directory() -> FakeUserDirectory:
    return FakeUserDirectory()


@pytest.fixture
def swipe_log() -> FakeSwipeLog:
    return FakeSwipeLog()


@pytest.fixture
def index_cache(
    fake_redis: FakeRedis,
    swipe_log: FakeSwipeLog,
    clock: Callable[[], datetime],
) -> ProfileIndexCache:
    return ProfileIndexCache(fake_redis, swipe_log, key_prefix="test", clock=clock)


@pytest.fixture
def match_service(
    swipe_log: FakeSwipeLog,
    user_directory: FakeUserDirectory,
    index_cache: ProfileIndexCache,
    clock: Callable[[], datetime],
) -> MatchService:
    return MatchService(swipe_log, user_directory, index_cache, clock=clock)


@pytest.fixture
def candidate_service(
    user_directory: FakeUserDirectory, index_cache: ProfileIndexCache
) -> CandidateService:
    return CandidateService(user_directory, index_cache)


@pytest.fixture
def test_user(user_directory: FakeUserDirectory) -> Profile:
    return user_directory.add()


@pytest.fixture
def another_test_user(user_directory: FakeUserDirectory) -> Profile:
    return user_directory.add()


@pytest.fixture
def premium_test_user(user_directory: FakeUserDirectory) -> Profile:
    return user_directory.add(is_premium=True)


# Database fixtures
@pytest.fixture
def db_manager() -> Generator[DatabaseManager, None, None]:
    db_manager = DatabaseManager(
        Settings(
            neo4j_uri=TEST_NEO4J_URI,
            neo4j_user=TEST_NEO4J_USER,
            neo4j_password=TEST_NEO4J_PASSWORD,
            neo4j_database=TEST_NEO4J_DATABASE,
        )
    )
    try:
        db_manager.verify_connectivity()
    except (DriverError, Neo4jError) as e:
        db_manager.close()
        pytest.skip(f"Neo4j is not reachable at {TEST_NEO4J_URI}: {e}")
    db_manager.ensure_schema()
    yield db_manager
    db_manager.close()


@pytest.fixture
def stored_users(db_manager: DatabaseManager) -> Generator[list[Profile], None, None]:
    """Two users written to Neo4j and removed with their swipes afterwards."""
    users = [
        Profile(user_id=uuid4(), username=f"user_{i}", display_name=f"User {i}")
        for i in range(2)
    ]
    user_ids = [str(user.user_id) for user in users]
    with db_manager.driver.session(database=db_manager.database) as session:
        session.run(
            """
            UNWIND $users AS user
            CREATE (:User {
                user_id: user.user_id,
                username: user.username,
                display_name: user.display_name,
                is_premium: false
            })
            """,
            users=[
                {
                    "user_id": str(user.user_id),
                    "username": user.username,
                    "display_name": user.display_name,
                }
                for user in users
            ],
        ).consume()
    yield users
    with db_manager.driver.session(database=db_manager.database) as session:
        session.run(
            "MATCH (user:User) WHERE user.user_id IN $user_ids DETACH DELETE user",
            user_ids=user_ids,
        ).consume()
