import logging

from neo4j import Driver, GraphDatabase

from app.config import Settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manager for the Neo4j connection backing the swipe log and user directory.

    One instance is created by the application lifespan and handed to the
    services that need it.

    Attributes:
        _driver: The Neo4j driver instance
        _uri: URI of the Neo4j database
        _auth: Tuple of username and password for authentication
        _database: Name of the Neo4j database to connect to
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize the database manager.

        Args:
            settings: Application settings holding the Neo4j credentials
        """
        self._driver: Driver | None = None
        self._uri: str = settings.neo4j_uri
        self._auth: tuple[str, str] = (settings.neo4j_user, settings.neo4j_password)
        self._database: str = settings.neo4j_database

    def verify_connectivity(self) -> None:
        """Verify database connectivity with current credentials.

        Raises:
            neo4j.exceptions.ServiceUnavailable: If database is not reachable
            neo4j.exceptions.AuthError: If credentials are invalid
        """
        self.driver.verify_connectivity()
        logger.info(f"Connected to Neo4j at {self._uri}")

    @property
    def driver(self) -> Driver:
        """Get or create the Neo4j driver instance.

        Returns:
            The Neo4j driver instance that can be used for database operations
        """
        if not self._driver:
            self._driver = GraphDatabase.driver(
                self._uri,
                auth=self._auth,
                max_connection_pool_size=10,  # Default is 100
                connection_timeout=30,  # Seconds
            )
        return self._driver

    @property
    def database(self) -> str:
        """Get the name of the Neo4j database."""
        return self._database

    def ensure_schema(self) -> None:
        """Create the constraints and indexes the swipe queries rely on."""
        with self.driver.session(database=self._database) as session:
            session.run(
                """
                CREATE CONSTRAINT user_id_unique IF NOT EXISTS
                FOR (user:User) REQUIRE user.user_id IS UNIQUE
                """
            )
            session.run(
                """
                CREATE INDEX swiped_date_index IF NOT EXISTS
                FOR ()-[swipe:SWIPED]-() ON (swipe.date)
                """
            )

    def close(self) -> None:
        """Close the database connection.

        If no connection exists, this is a no-op.
        """
        if self._driver:
            self._driver.close()
            self._driver = None
            logger.info("Closed Neo4j driver")
