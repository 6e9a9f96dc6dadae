from os import environ

from pydantic import BaseModel, ConfigDict, Field


class Settings(BaseModel):
    """Runtime configuration for the dating service.

    Values are read from environment variables by ``from_environ``. Every
    service receives the settings it needs at construction time.

    Attributes:
        neo4j_uri: URI of the Neo4j database
        neo4j_user: Neo4j username
        neo4j_password: Neo4j password
        neo4j_database: Name of the Neo4j database to connect to
        redis_url: Connection URL of the Redis index cache
        cache_key_prefix: Namespace prepended to every cache key
        daily_like_limit: Likes a non-premium user may record per day
        candidate_oversample: Extra candidates fetched beyond the limit
        jwt_secret: Secret used to verify bearer tokens
        jwt_algorithm: Signing algorithm of bearer tokens
        log_level: Root logging level
        timezone: IANA timezone whose midnight resets the daily quota, the
            server's local timezone when empty
    """

    model_config = ConfigDict(frozen=True)

    neo4j_uri: str = ""
    neo4j_user: str = ""
    neo4j_password: str = ""
    neo4j_database: str = ""
    redis_url: str = "redis://localhost:6379/0"
    cache_key_prefix: str = "dating"
    daily_like_limit: int = Field(10, ge=0)
    candidate_oversample: int = Field(10, ge=0)
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    log_level: str = "INFO"
    timezone: str = ""

    @classmethod
    def from_environ(cls) -> "Settings":
        return cls(
            neo4j_uri=environ.get("NEO4J_URI", ""),
            neo4j_user=environ.get("NEO4J_USER", ""),
            neo4j_password=environ.get("NEO4J_PASSWORD", ""),
            neo4j_database=environ.get("NEO4J_DATABASE", ""),
            redis_url=environ.get("REDIS_URL", "redis://localhost:6379/0"),
            cache_key_prefix=environ.get("CACHE_KEY_PREFIX", "dating"),
            daily_like_limit=environ.get("DAILY_LIKE_LIMIT", "10"),
            candidate_oversample=environ.get("CANDIDATE_OVERSAMPLE", "10"),
            jwt_secret=environ.get("JWT_SECRET", ""),
            jwt_algorithm=environ.get("JWT_ALGORITHM", "HS256"),
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
            timezone=environ.get("APP_TIMEZONE", ""),
        )
