import logging

import redis

from app.config import Settings

logger = logging.getLogger(__name__)


class CacheManager:
    """Manager for the Redis connection holding the per-user profile indexes.

    The cache is advisory: the application keeps serving swipes when Redis
    cannot be reached, so ``connect`` reports failure instead of raising.

    Attributes:
        _client: The redis-py client, created lazily
        _url: Redis connection URL
        _max_connections: Size of the connection pool
        _socket_timeout: Socket timeout in seconds
    """

    def __init__(
        self,
        settings: Settings,
        max_connections: int = 10,
        socket_timeout: float = 2.0,
    ) -> None:
        self._client: redis.Redis | None = None
        self._url = settings.redis_url
        self._max_connections = max_connections
        self._socket_timeout = socket_timeout

    @property
    def client(self) -> redis.Redis:
        """Get or create the Redis client."""
        if self._client is None:
            self._client = redis.Redis.from_url(
                self._url,
                decode_responses=True,
                max_connections=self._max_connections,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_timeout,
            )
        return self._client

    def connect(self) -> bool:
        """Ping Redis and report whether it is reachable."""
        try:
            self.client.ping()
        except redis.exceptions.RedisError as e:
            logger.warning(f"Redis unavailable at {self._mask_url()}: {e}")
            return False
        logger.info(f"Connected to Redis at {self._mask_url()}")
        return True

    def _mask_url(self) -> str:
        # redis://:password@host -> redis://:***@host
        if "@" in self._url:
            credentials, host = self._url.rsplit("@", 1)
            if credentials.count(":") > 1:
                scheme, _, _ = credentials.rpartition(":")
                return f"{scheme}:***@{host}"
        return self._url

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Closed Redis client")
